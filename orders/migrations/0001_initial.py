import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='OrderRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('customer_name', models.CharField(max_length=100)),
                ('email', models.EmailField(max_length=254)),
                ('phone', models.CharField(blank=True, max_length=20, null=True)),
                ('fulfillment_method', models.CharField(choices=[('PICKUP', 'Pickup'), ('DELIVERY', 'Delivery'), ('SHIPPING', 'Shipping')], default='PICKUP', max_length=20)),
                ('shipping_address', models.TextField(blank=True, help_text='Required when fulfillment method is SHIPPING', null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('status', models.CharField(choices=[('NEW', 'New'), ('CONFIRMED', 'Confirmed'), ('CLOSED', 'Closed')], db_index=True, default='NEW', help_text='Current request status', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Order Request',
                'verbose_name_plural': 'Order Requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='order_req_status_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderRequestItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_slug', models.CharField(max_length=200)),
                ('product_name', models.CharField(max_length=200)),
                ('variant_size', models.CharField(max_length=50)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('price', models.PositiveIntegerField(blank=True, help_text='Unit price in cents; empty for legacy single-item requests', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order_request', models.ForeignKey(help_text='Parent order request', on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.orderrequest')),
            ],
            options={
                'verbose_name': 'Order Request Item',
                'verbose_name_plural': 'Order Request Items',
                'ordering': ['id'],
            },
        ),
    ]
