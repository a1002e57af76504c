from fastapi import APIRouter, HTTPException
import logging

from pricing_engine.core.config import settings
from pricing_engine.core.redis import redis_manager
from pricing_engine.core.database import database_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["健康检查"])


@router.get("")
async def health_check():
    """基础健康检查接口"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@router.get("/database")
async def database_health():
    """数据库连接健康检查"""
    health_status = {
        "postgresql": False,
        "redis": False,
        "overall": False,
        "details": {}
    }

    try:
        # 测试PostgreSQL连接
        pg_status = await database_service.health_check()
        health_status["postgresql"] = pg_status["status"] == "healthy"
        health_status["details"]["postgresql"] = pg_status["message"]

        # 测试Redis连接，Redis只用于限流，不可用时计价照常
        if redis_manager.redis_pool:
            try:
                await redis_manager.redis_pool.ping()
                health_status["redis"] = True
                health_status["details"]["redis"] = "连接正常"
            except Exception as e:
                health_status["details"]["redis"] = f"连接失败: {str(e)}"
        else:
            health_status["details"]["redis"] = "连接池未初始化"

        health_status["overall"] = health_status["postgresql"]

        if not (health_status["postgresql"] and health_status["redis"]):
            logger.warning("数据库连接检查部分失败", extra={"health": health_status})
            return health_status

        logger.info("数据库连接检查全部通过")
        return health_status

    except Exception as e:
        logger.error(f"数据库健康检查异常: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail={
                "error": "数据库连接失败",
                "message": str(e),
                "status": health_status
            }
        )
