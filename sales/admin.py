"""
Django Admin configuration for sales.
"""
from django.contrib import admin
from .models import Sale, SaleItem


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    readonly_fields = ['variant', 'product_name', 'variant_size', 'quantity', 'unit_price']
    can_delete = False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['id', 'channel', 'customer_name', 'total', 'created_at']
    list_filter = ['channel', 'created_at']
    search_fields = ['id', 'customer_name', 'email']
    ordering = ['-created_at']
    readonly_fields = ['channel', 'customer_name', 'email', 'notes', 'total', 'created_at']
    inlines = [SaleItemInline]

    def has_change_permission(self, request, obj=None):
        return False
