"""
URL routing for order API endpoints.
"""
from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('order', views.OrderIntakeView.as_view(), name='order-intake'),
    path('admin/requests', views.OrderRequestListView.as_view(), name='request-list'),
    path('admin/requests/<int:pk>', views.OrderRequestDetailView.as_view(), name='request-detail'),
]
