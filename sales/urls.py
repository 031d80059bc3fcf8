"""
URL routing for sales endpoints.
"""
from django.urls import path
from . import views

app_name = 'sales'

urlpatterns = [
    path('admin/sales', views.SaleListCreateView.as_view(), name='sale-list'),
    path('admin/dashboard', views.DashboardStatsView.as_view(), name='dashboard'),
]
