import redis.asyncio as aioredis
from typing import Optional
from pricing_engine.core.config import settings
import structlog

"redis连接管理器以及公开接口限流器"

logger = structlog.get_logger()


class RedisManager:
    """Redis连接管理器"""

    def __init__(self):
        self.redis_pool: Optional[aioredis.Redis] = None

    async def init_redis(self) -> None:
        """初始化Redis连接池"""
        try:
            self.redis_pool = aioredis.from_url(
                settings.redis_url_computed,
                encoding="utf-8",
                decode_responses=True,
                max_connections=20,
                retry_on_timeout=True
            )
            # 测试连接
            await self.redis_pool.ping()
            logger.info("Redis连接初始化成功")
        except Exception as e:
            logger.error("Redis连接初始化失败", error=str(e))
            raise

    async def close_redis(self) -> None:
        """关闭Redis连接"""
        if self.redis_pool:
            await self.redis_pool.close()
            logger.info("Redis连接已关闭")

    async def incr_with_expire(self, key: str, expire: int) -> Optional[int]:
        """计数+1，首次写入时设置过期时间，返回当前计数"""
        try:
            count = await self.redis_pool.incr(key)
            if count == 1:
                await self.redis_pool.expire(key, expire)
            return count
        except Exception as e:
            logger.error("Redis计数失败", key=key, error=str(e))
            return None


# 全局Redis管理器实例
redis_manager = RedisManager()


class RateLimiter:
    """固定窗口限流器"""

    def __init__(self, redis_manager: RedisManager, prefix: str, limit: int, window_seconds: int):
        self.redis = redis_manager
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds

    async def allow(self, identity: str) -> bool:
        """
        判断本次请求是否放行，Redis不可用时一律放行
        """
        if not self.redis.redis_pool:
            logger.warning("Redis未初始化，跳过限流", prefix=self.prefix)
            return True

        key = f"{self.prefix}{identity}"
        count = await self.redis.incr_with_expire(key, self.window_seconds)
        if count is None:
            return True

        if count > self.limit:
            logger.info("请求触发限流", key=key, count=count, limit=self.limit)
            return False
        return True


# 优惠券校验接口限流器 (公开接口，防止暴力猜测优惠码)
coupon_verify_limiter = RateLimiter(
    redis_manager,
    prefix="ratelimit:coupon_verify:",
    limit=settings.verify_rate_limit,
    window_seconds=settings.verify_rate_window_seconds
)
