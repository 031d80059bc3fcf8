"""
Django Admin configuration for inventory models.
"""
from django.contrib import admin
from .models import Product, Variant


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ['size', 'color', 'sku', 'price', 'quantity_on_hand', 'quantity_reserved', 'quantity_sold']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'slug', 'type', 'variant_count', 'created_at']
    list_filter = ['type']
    search_fields = ['name', 'slug']
    ordering = ['name']
    inlines = [VariantInline]

    def variant_count(self, obj):
        return obj.variants.count()
    variant_count.short_description = 'Variants'


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'product', 'size', 'quantity_on_hand', 'quantity_reserved',
        'quantity_sold', 'is_out_of_stock', 'last_restocked_at'
    ]
    list_filter = ['product', 'size']
    search_fields = ['product__name', 'sku']
    ordering = ['product__name', 'size']
    raw_id_fields = ['product']

    def is_out_of_stock(self, obj):
        return obj.is_out_of_stock
    is_out_of_stock.boolean = True
    is_out_of_stock.short_description = 'Out of stock'
