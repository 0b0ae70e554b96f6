from django.db import transaction
from django.db.models.signals import post_save, post_delete, pre_save
from django.dispatch import receiver
import logging

from bookings.models import Booking
from .models import Venue, BlockedSlot
from .services import AvailabilityService

logger = logging.getLogger(__name__)

# Для отслеживания переноса брони на другую площадку или дату: pk -> (venue_id, booking_date)
booking_old_positions = {}


def invalidate_after_commit(venue_id, dates):
    """
    Сброс кеша после коммита: чтение до коммита не должно закешировать старую сетку
    """
    transaction.on_commit(lambda: AvailabilityService.handle_dates_change(venue_id, dates))


@receiver(pre_save, sender=Booking)
def store_old_booking_position(sender, instance, **kwargs):
    """
    Сохраняет старые площадку и дату брони перед обновлением
    """
    if instance.pk:
        old = Booking.objects.filter(pk=instance.pk).values_list('venue_id', 'booking_date').first()
        if old:
            booking_old_positions[instance.pk] = old


@receiver(post_save, sender=Venue)
@receiver(post_delete, sender=Venue)
def on_venue_change(sender, instance, **kwargs):
    """
    Часы работы или активность площадки меняют всю сетку
    """
    venue_id = instance.id
    transaction.on_commit(lambda: AvailabilityService.handle_venue_change(venue_id))


@receiver(post_save, sender=Booking)
def on_booking_save(sender, instance, created, **kwargs):
    old = booking_old_positions.pop(instance.pk, None) if not created else None
    if old is None:
        invalidate_after_commit(instance.venue_id, [instance.booking_date])
        return

    old_venue_id, old_date = old
    if old_venue_id == instance.venue_id:
        invalidate_after_commit(instance.venue_id, [instance.booking_date, old_date])
    else:
        logger.info(f"Бронь {instance.pk} перенесена с площадки {old_venue_id} на {instance.venue_id}")
        invalidate_after_commit(old_venue_id, [old_date])
        invalidate_after_commit(instance.venue_id, [instance.booking_date])


@receiver(post_delete, sender=Booking)
def on_booking_delete(sender, instance, **kwargs):
    invalidate_after_commit(instance.venue_id, [instance.booking_date])


@receiver(post_save, sender=BlockedSlot)
@receiver(post_delete, sender=BlockedSlot)
def on_blocked_slot_change(sender, instance, **kwargs):
    invalidate_after_commit(instance.venue_id, [instance.block_date])
