from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from datetime import time
import uuid


def hour_of(value):
    """Час из time или строки 'HH:MM'"""
    if isinstance(value, time):
        return value.hour
    return int(str(value).split(':')[0])


def closing_hour(value):
    """Час закрытия: 00:00 означает полночь конца дня (24)"""
    hour = hour_of(value)
    return 24 if hour == 0 else hour


class Venue(models.Model):
    """Площадка (турф), которую владелец сдает почасово"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='venues',
        verbose_name='Владелец'
    )
    name = models.CharField(max_length=255, verbose_name='Название')
    sport_type = models.CharField(max_length=50, default='football', verbose_name='Вид спорта')
    location = models.CharField(max_length=500, blank=True, verbose_name='Адрес')
    city = models.CharField(max_length=100, blank=True, verbose_name='Город')
    whatsapp_number = models.CharField(max_length=20, blank=True, verbose_name='WhatsApp')

    operating_hours_start = models.TimeField(default=time(6, 0), verbose_name='Открытие')
    operating_hours_end = models.TimeField(
        default=time(0, 0),
        verbose_name='Закрытие',
        help_text='00:00 означает работу до полуночи'
    )
    slot_duration = models.PositiveIntegerField(
        default=60,
        verbose_name='Длительность слота (мин)'
    )

    base_price = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(0)],
        verbose_name='Базовая цена за час'
    )
    price_1h = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_2h = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_3h = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    weekday_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    weekend_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(
        default=True,
        verbose_name='Активна',
        help_text='Неактивные площадки недоступны для бронирования'
    )
    is_public = models.BooleanField(
        default=False,
        verbose_name='Публичная',
        help_text='Сетка доступности видна без авторизации'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'venues'
        verbose_name = 'Площадка'
        verbose_name_plural = 'Площадки'
        indexes = [
            models.Index(fields=['owner', 'is_active'], name='venues_owner_i_5c1d2e_idx'),
            models.Index(fields=['city'], name='venues_city_8b0f4a_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.location})" if self.location else self.name

    @property
    def opening_hour(self):
        return hour_of(self.operating_hours_start)

    @property
    def closing_hour(self):
        return closing_hour(self.operating_hours_end)

    def clean(self):
        if self.slot_duration % 60:
            raise ValidationError('Slot duration must be a whole number of hours')
        if self.opening_hour >= self.closing_hour:
            raise ValidationError('Opening hour must be before closing hour')


class BlockedSlot(models.Model):
    """Интервал, закрытый владельцем вручную (ремонт, турнир и т.п.)"""

    venue = models.ForeignKey(
        Venue,
        on_delete=models.CASCADE,
        related_name='blocked_slots'
    )
    block_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(help_text='00:00 означает полночь')
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'blocked_slots'
        indexes = [
            models.Index(fields=['venue', 'block_date'], name='blocked_slo_venue_i_3a7e91_idx'),
        ]
        ordering = ['block_date', 'start_time']

    def __str__(self):
        return f"{self.venue_id} {self.block_date} {self.start_time}-{self.end_time}"

    def clean(self):
        if hour_of(self.start_time) >= closing_hour(self.end_time):
            raise ValidationError('Start time must be before end time')
