"""
Redis客户端 - 命名空间隔离的分布式锁与健康检查

Redis 是可选依赖：未配置 REDIS__URL 时 `get_redis_client()` 返回 None，
调用方退化为仅依赖数据库约束。
"""
from __future__ import annotations

import asyncio
import socket
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


class RedisClient:
    """带命名空间的Redis客户端"""

    def __init__(self, client: aioredis.Redis, namespace: str = ""):
        self._client = client
        self._namespace = namespace.strip(":")

    def _format_key(self, key: str) -> str:
        """格式化键名，添加命名空间前缀"""
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: int = 10,
        blocking_timeout: int = 5,
    ) -> AsyncIterator[object]:
        """
        分布式锁上下文管理器

        Args:
            key: 锁的键名
            timeout: 锁的超时时间（秒）
            blocking_timeout: 获取锁的等待时间（秒）
        """
        lock_key = f"lock:{self._format_key(key)}"
        lock = self._client.lock(
            lock_key,
            timeout=timeout,
            blocking_timeout=blocking_timeout,
        )

        acquired = await lock.acquire()
        if not acquired:
            raise TimeoutError(f"获取锁失败: {lock_key}")
        try:
            yield lock
        finally:
            try:
                await lock.release()
            except LockError as e:
                # 锁已超时过期，由其他持有者接管
                logger.warning("redis_lock_release_failed", key=lock_key, error=str(e))

    async def health_check(self) -> bool:
        """PING 是否成功"""
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.error("redis_health_check_failed", error=str(e))
            return False


# ============= 单例管理 =============

_redis_client: Optional[aioredis.Redis] = None
_cache_instance: Optional[RedisClient] = None
_lock = asyncio.Lock()


async def init_redis_client(namespace: Optional[str] = None, **kwargs) -> Optional[RedisClient]:
    """
    初始化Redis客户端；未配置 URL 时返回 None

    Args:
        namespace: 命名空间，默认取 settings.redis.namespace
        **kwargs: 其他Redis连接参数
    """
    global _redis_client, _cache_instance

    if _cache_instance is not None:
        return _cache_instance

    if not settings.redis.url:
        logger.info("redis_disabled")
        return None

    async with _lock:
        if _cache_instance is not None:
            return _cache_instance

        # 构建跨平台 keepalive 选项（若可用）
        keepalive_opts = {}
        if hasattr(socket, "TCP_KEEPIDLE") and hasattr(socket, "TCP_KEEPINTVL") and hasattr(socket, "TCP_KEEPCNT"):
            keepalive_opts = {
                socket.TCP_KEEPIDLE: 1,
                socket.TCP_KEEPINTVL: 1,
                socket.TCP_KEEPCNT: 3,
            }

        client = aioredis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.max_connections,
            socket_keepalive=True,
            socket_keepalive_options=keepalive_opts,
            **kwargs
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error("redis_init_failed", error=str(e))
            await client.aclose()
            raise

        _redis_client = client
        _cache_instance = RedisClient(client=client, namespace=namespace or settings.redis.namespace)
        logger.info("redis_initialized", namespace=_cache_instance._namespace)
        return _cache_instance


def get_redis_client() -> Optional[RedisClient]:
    """获取全局Redis客户端实例（未初始化时为 None）"""
    return _cache_instance


async def shutdown_redis_client() -> None:
    """关闭Redis连接"""
    global _redis_client, _cache_instance

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("redis_closed")
        finally:
            _redis_client = None
            _cache_instance = None


__all__ = [
    "RedisClient",
    "init_redis_client",
    "get_redis_client",
    "shutdown_redis_client",
]
