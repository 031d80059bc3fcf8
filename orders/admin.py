"""
Django Admin configuration for order request models.
"""
from django.contrib import admin
from .models import OrderRequest, OrderRequestItem


class OrderRequestItemInline(admin.TabularInline):
    model = OrderRequestItem
    extra = 0
    readonly_fields = ['product_slug', 'product_name', 'variant_size', 'quantity', 'price']
    can_delete = False


@admin.register(OrderRequest)
class OrderRequestAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_name', 'email', 'fulfillment_method', 'status', 'item_count', 'created_at']
    list_filter = ['status', 'fulfillment_method', 'created_at']
    search_fields = ['id', 'customer_name', 'email']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [OrderRequestItemInline]

    def item_count(self, obj):
        return obj.item_count
    item_count.short_description = 'Items'
