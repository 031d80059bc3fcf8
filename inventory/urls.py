"""
URL routing for inventory admin endpoints.
"""
from django.urls import path
from . import views

app_name = 'inventory'

urlpatterns = [
    path('admin/products', views.ProductListCreateView.as_view(), name='product-list'),
    path('admin/variants', views.VariantListCreateView.as_view(), name='variant-list'),
    path('admin/variants/<int:pk>', views.VariantDetailView.as_view(), name='variant-detail'),
]
