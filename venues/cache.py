from django.conf import settings
from django.core.cache import cache
from datetime import date, datetime
import logging

logger = logging.getLogger(__name__)


class AvailabilityCache:
    """
    Кеш недельной сетки доступности площадок
    """

    # Префикс для ключей кеша доступности
    AVAILABILITY_KEY_PREFIX = 'avail'

    @classmethod
    def default_ttl(cls):
        return getattr(settings, 'AVAILABILITY_CACHE_TTL', 60)

    @classmethod
    def get_availability_key(cls, venue_id, week_start):
        """
        Ключ кеша доступности площадки на неделю
        :param venue_id: UUID площадки
        :param week_start: понедельник недели (date или YYYY-MM-DD)
        """
        if isinstance(week_start, (date, datetime)):
            week_str = week_start.strftime('%Y-%m-%d')
        else:
            week_str = str(week_start)

        return f"{cls.AVAILABILITY_KEY_PREFIX}:{venue_id}:{week_str}"

    @classmethod
    def set_availability(cls, venue_id, week_start, availability_data, ttl=None):
        if ttl is None:
            ttl = cls.default_ttl()

        key = cls.get_availability_key(venue_id, week_start)

        try:
            cache.set(key, availability_data, timeout=ttl)
            logger.debug(f"Кеш доступности сохранен: {key}, TTL: {ttl}с")
        except Exception as e:
            logger.error(f"Ошибка сохранения кеша доступности {key}: {str(e)}")

    @classmethod
    def get_availability(cls, venue_id, week_start):
        """
        :return: данные о доступности или None
        """
        key = cls.get_availability_key(venue_id, week_start)

        try:
            data = cache.get(key)
            if data is not None:
                logger.debug(f"Кеш доступности получен: {key}")
            return data
        except Exception as e:
            logger.error(f"Ошибка получения кеша доступности {key}: {str(e)}")
            return None

    @classmethod
    def invalidate_venue_availability(cls, venue_id, week_starts=None):
        """
        Инвалидирует кеш доступности площадки
        :param week_starts: конкретные недели (понедельники); без них - все недели площадки
        """
        try:
            if week_starts:
                keys = [cls.get_availability_key(venue_id, week) for week in set(week_starts)]
                cache.delete_many(keys)
                logger.debug(f"Кеш доступности инвалидирован: {keys}")
            else:
                pattern = f"{cls.AVAILABILITY_KEY_PREFIX}:{venue_id}:*"
                cls._delete_keys_by_pattern(pattern)
                logger.debug(f"Весь кеш доступности инвалидирован для площадки: {venue_id}")
        except Exception as e:
            logger.error(f"Ошибка инвалидации кеша для площадки {venue_id}: {str(e)}")

    @classmethod
    def _delete_keys_by_pattern(cls, pattern):
        """
        Удаляет ключи по шаблону. Работает только с django-redis,
        у локального кеша нет поиска по шаблону - тогда чистим весь кеш.
        """
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(pattern)
            logger.debug(f"Удалено ключей по шаблону {pattern}: {deleted}")
        else:
            cache.clear()
