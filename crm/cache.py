"""
参考数据缓存：按资源名缓存一段时间（TTL），过期后由第一个请求负责刷新

用法：
    cache = TTLCache()
    team = cache.get_or_refresh("team", 300, lambda: client.list_teams())
"""
import logging
import threading
import time
from typing import Any, Callable

from .metrics import CACHE_HIT, CACHE_MISS

logger = logging.getLogger(__name__)


class TTLCache:
    """
    进程内 TTL 缓存
    同一个 key 同时只有一个线程在刷新，其余线程等待刷新结果
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._locks: dict[str, threading.Lock] = {}
        # invalidate 时递增；刷新前后版本不一致说明期间有写操作，结果不入缓存
        self._versions: dict[str, int] = {}
        self._cleared = 0
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _version(self, key: str) -> tuple[int, int]:
        return self._cleared, self._versions.get(key, 0)

    def _fresh(self, key: str, ttl: float):
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        stored_at, value = entry
        if self._clock() - stored_at >= ttl:
            return False, None
        return True, value

    def get_or_refresh(self, key: str, ttl: float, loader: Callable[[], Any]) -> Any:
        """
        未过期时直接返回缓存值；否则调用 loader 刷新
        loader 抛出的异常原样向上抛，旧值保留不变
        """
        hit, value = self._fresh(key, ttl)
        if hit:
            CACHE_HIT.labels(key=key).inc()
            return value

        with self._lock_for(key):
            # 等锁期间其他线程可能已经刷新过
            hit, value = self._fresh(key, ttl)
            if hit:
                CACHE_HIT.labels(key=key).inc()
                return value

            CACHE_MISS.labels(key=key).inc()
            logger.debug("Refreshing cache entry %s", key)
            with self._guard:
                version = self._version(key)
            value = loader()
            with self._guard:
                if self._version(key) == version:
                    self._entries[key] = (self._clock(), value)
                else:
                    logger.debug("Cache entry %s invalidated during refresh, result not stored", key)
            return value

    def invalidate(self, key: str | None = None) -> None:
        """清除一个 key；不传 key 时全部清除。正在进行的刷新结果不会再写入"""
        with self._guard:
            if key is None:
                self._entries.clear()
                self._cleared += 1
            else:
                self._entries.pop(key, None)
                self._versions[key] = self._versions.get(key, 0) + 1
