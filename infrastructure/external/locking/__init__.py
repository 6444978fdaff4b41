"""基于 Redis 的跨进程锁（可选）；未配置 REDIS__URL 时各入口返回 None"""
from .redis_client import RedisClient, get_redis_client, init_redis_client, shutdown_redis_client

__all__ = ["RedisClient", "get_redis_client", "init_redis_client", "shutdown_redis_client"]
