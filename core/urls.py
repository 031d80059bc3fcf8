"""
URL routing for admin session endpoints.
"""
from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('admin/login', views.AdminLoginView.as_view(), name='admin-login'),
    path('admin/logout', views.AdminLogoutView.as_view(), name='admin-logout'),
]
