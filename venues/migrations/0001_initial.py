import datetime
import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Venue',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255, verbose_name='Название')),
                ('sport_type', models.CharField(default='football', max_length=50, verbose_name='Вид спорта')),
                ('location', models.CharField(blank=True, max_length=500, verbose_name='Адрес')),
                ('city', models.CharField(blank=True, max_length=100, verbose_name='Город')),
                ('whatsapp_number', models.CharField(blank=True, max_length=20, verbose_name='WhatsApp')),
                ('operating_hours_start', models.TimeField(default=datetime.time(6, 0), verbose_name='Открытие')),
                ('operating_hours_end', models.TimeField(default=datetime.time(0, 0), help_text='00:00 означает работу до полуночи', verbose_name='Закрытие')),
                ('slot_duration', models.PositiveIntegerField(default=60, verbose_name='Длительность слота (мин)')),
                ('base_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Базовая цена за час')),
                ('price_1h', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_2h', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_3h', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('weekday_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('weekend_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('is_active', models.BooleanField(default=True, help_text='Неактивные площадки недоступны для бронирования', verbose_name='Активна')),
                ('is_public', models.BooleanField(default=False, help_text='Сетка доступности видна без авторизации', verbose_name='Публичная')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='venues', to=settings.AUTH_USER_MODEL, verbose_name='Владелец')),
            ],
            options={
                'verbose_name': 'Площадка',
                'verbose_name_plural': 'Площадки',
                'db_table': 'venues',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', 'is_active'], name='venues_owner_i_5c1d2e_idx'),
                    models.Index(fields=['city'], name='venues_city_8b0f4a_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BlockedSlot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('block_date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField(help_text='00:00 означает полночь')),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blocked_slots', to='venues.venue')),
            ],
            options={
                'db_table': 'blocked_slots',
                'ordering': ['block_date', 'start_time'],
                'indexes': [
                    models.Index(fields=['venue', 'block_date'], name='blocked_slo_venue_i_3a7e91_idx'),
                ],
            },
        ),
    ]
