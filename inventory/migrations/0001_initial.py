import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, help_text='Product name for display', max_length=200)),
                ('slug', models.SlugField(help_text='URL slug, matches the catalog entry', max_length=200, unique=True)),
                ('type', models.CharField(default='button-down', help_text='Product type', max_length=50)),
                ('description', models.TextField(blank=True, default='', help_text='Optional product description')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Variant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('size', models.CharField(max_length=50)),
                ('color', models.CharField(blank=True, max_length=50, null=True)),
                ('sku', models.CharField(blank=True, help_text='Optional stock keeping unit', max_length=100, null=True, unique=True)),
                ('price', models.PositiveIntegerField(blank=True, help_text='Sale price in cents', null=True)),
                ('cost', models.PositiveIntegerField(blank=True, help_text='Unit cost in cents', null=True)),
                ('quantity_on_hand', models.PositiveIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('quantity_reserved', models.PositiveIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('quantity_sold', models.PositiveIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('last_restocked_at', models.DateTimeField(blank=True, help_text='Last time on-hand stock was increased', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(help_text='Parent product', on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='inventory.product')),
            ],
            options={
                'verbose_name': 'Variant',
                'verbose_name_plural': 'Variants',
                'ordering': ['product__name', 'size'],
                'indexes': [
                    models.Index(fields=['quantity_on_hand'], name='variant_on_hand_idx'),
                    models.Index(fields=['quantity_sold'], name='variant_sold_idx'),
                ],
            },
        ),
    ]
