import uuid
from functools import lru_cache

import redis

from shop.utils.retry import redis_retry
from shop.utils.settings import REDIS_URL, REDIS_TIMEOUT_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one step; Lua runs atomically inside Redis,
# so nobody can slip in between the GET and the DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    -per-user checkout lock (SET NX EX)
    -release only by the holder's token (Lua)
    -expires on its own after ttl
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
            socket_timeout=REDIS_TIMEOUT_SECONDS,
            socket_connect_timeout=REDIS_TIMEOUT_SECONDS,
        )

    @staticmethod
    def _key(user_id) -> str:
        return f"cart:{user_id}:checkout"

    def acquire_checkout_lock(self, user_id, ttl: int) -> str | None:
        """Returns the holder token, or None when another checkout holds the lock."""
        key = self._key(user_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        if self._set_if_absent(key, token, ttl):
            return token
        return None

    @redis_retry()
    def _set_if_absent(self, key: str, token: str, ttl: int) -> bool:
        # SET cart:<user>:checkout <token> NX EX <ttl>
        if self.redis.set(name=key, value=token, nx=True, ex=ttl):
            return True
        # a retried SET may have landed the first time
        return self.redis.get(key) == token

    @redis_retry()
    def release_checkout_lock(self, user_id, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)


@lru_cache
def get_lock_service() -> LockService:
    return LockService()
