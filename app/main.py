"""
FastAPI 应用主入口
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# 将项目根目录添加到 python path，以便直接运行 main.py 时能找到 app 模块
sys.path.append(str(Path(__file__).resolve().parent.parent))

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from app.config import get_settings
from app.observability.logging_config import setup_logging
from app.observability.metrics_middleware import MetricsMiddleware
from app.observability.request_logger import RequestLoggerMiddleware

settings = get_settings()

# 初始化日志（在 import 时就生效）
setup_logging(env=settings.ENV, level=settings.LOG_LEVEL)
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """应用生命周期：启动时检查存储目录（只告警，不创建、不拒绝启动）"""
    log.info("应用启动", env=settings.ENV, app=settings.APP_NAME, tasks_dir=settings.TASKS_DIR)

    if not Path(settings.TASKS_DIR).is_dir():
        log.warning("任务目录不存在，请先手动创建", tasks_dir=settings.TASKS_DIR)

    yield

    log.info("应用关闭")


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# ── 中间件（执行顺序：从下往上注册，从上往下执行） ──
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(MetricsMiddleware)

# ── Prometheus 指标端点 ──
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── 路由注册 ──
from app.api.health import router as health_router
from app.api.root import router as root_router
from app.api.tasks import router as tasks_router

app.include_router(root_router)
app.include_router(health_router)
app.include_router(tasks_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT, log_config=None)
