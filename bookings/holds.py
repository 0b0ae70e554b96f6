"""
Удержание слотов на время оформления брони.

Холд - это набор Redis-локов, по одному на каждый час интервала, с общим
токеном владельца. Холды не пишутся в базу и не влияют на сетку доступности:
настоящую защиту от двойной брони дает уникальный индекс BookingSlot.
"""
from django.conf import settings
from django.utils import timezone
from datetime import timedelta
import logging
import uuid

from core.exceptions import SlotConflictError
from core.lock import acquire_lock, release_lock

logger = logging.getLogger(__name__)


def hold_key(venue_id, day, hour):
    return f"hold:{venue_id}:{day.isoformat()}:{hour:02d}"


class SlotHoldService:

    @classmethod
    def ttl(cls):
        return getattr(settings, 'HOLD_TTL', 300)

    @classmethod
    def acquire(cls, venue, day, start_hour, duration_hours, token=None):
        """
        Захватывает все часы интервала одним токеном.
        Если хоть один час уже удерживается - откатывает захваченные и бросает SlotConflictError.
        """
        ttl = cls.ttl()
        token = token or str(uuid.uuid4())
        keys = [hold_key(venue.id, day, hour) for hour in range(start_hour, start_hour + duration_hours)]

        acquired = []
        for key in keys:
            if acquire_lock(key, ttl, token=token) is None:
                cls._release_keys(acquired, token)
                logger.info(f"Слот {key} уже удерживается другим клиентом")
                raise SlotConflictError('This slot is being booked by someone else. Try again shortly.')
            acquired.append(key)

        logger.info(f"Холд {keys[0]}..{keys[-1]} на {ttl}с")
        return {
            'token': token,
            'keys': keys,
            'expires_at': (timezone.now() + timedelta(seconds=ttl)).isoformat(),
        }

    @classmethod
    def release(cls, venue, day, start_hour, duration_hours, token):
        keys = [hold_key(venue.id, day, hour) for hour in range(start_hour, start_hour + duration_hours)]
        return cls._release_keys(keys, token)

    @classmethod
    def _release_keys(cls, keys, token):
        released = 0
        for key in keys:
            released += int(release_lock(key, token) or 0)
        return released
