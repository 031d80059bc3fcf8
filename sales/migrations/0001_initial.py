import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Sale',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel', models.CharField(choices=[('WEBSITE', 'Website'), ('INSTAGRAM', 'Instagram'), ('POPUP', 'Pop-up'), ('OTHER', 'Other')], db_index=True, max_length=20)),
                ('customer_name', models.CharField(blank=True, max_length=200, null=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('total', models.PositiveIntegerField(blank=True, help_text='Total in cents', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                'verbose_name': 'Sale',
                'verbose_name_plural': 'Sales',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SaleItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(max_length=200)),
                ('variant_size', models.CharField(max_length=50)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('unit_price', models.PositiveIntegerField(blank=True, help_text='Unit price in cents', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('sale', models.ForeignKey(help_text='Parent sale', on_delete=django.db.models.deletion.CASCADE, related_name='line_items', to='sales.sale')),
                ('variant', models.ForeignKey(blank=True, help_text='Sold variant; cleared if the variant is deleted', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sale_items', to='inventory.variant')),
            ],
            options={
                'verbose_name': 'Sale Item',
                'verbose_name_plural': 'Sale Items',
                'ordering': ['id'],
            },
        ),
    ]
