# безопасный Redis-lock для удержания слотов на время оформления брони.

import uuid

from .redis_client import redis_client


# Ставит лок атомарно (SET NX EX) и возвращает токен владельца. TTL защищает от вечных локов.
# Один токен можно передать в несколько вызовов, чтобы держать группу ключей одним владельцем.
def acquire_lock(key: str, ttl: int, token: str = None):
    token = token or str(uuid.uuid4())
    acquired = redis_client.set(key, token, nx=True, ex=ttl)
    return token if acquired else None


# Удаляет лок только если токен совпадает. Сравнение и удаление атомарны через Lua.
def release_lock(key: str, token: str):
    lua = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
      return redis.call("del", KEYS[1])
    else
      return 0
    end
    """
    return redis_client.eval(lua, 1, key, token)
