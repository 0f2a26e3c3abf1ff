"""
主程序入口
"""
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .bootstrap import Runtime, build_runtime
from .core.config import settings
from .core.logger import logger
from .core.thread_pool import shutdown_pools
from .modules.web import register_routers


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """创建控制端应用。未传入 runtime 时在启动事件中装配。"""
    app = FastAPI(
        title="AFK Journey 自动化控制端",
        description="任务运行 / 暂停 / 停止 + 日志与截图预览",
        version="1.0.0",
    )
    app.state.runtime = runtime
    register_routers(app)

    @app.on_event("startup")
    async def startup():
        """应用启动事件"""
        logger.info("应用启动中...")
        if app.state.runtime is None:
            # ConfigError 在此抛出，阻止服务启动
            app.state.runtime = build_runtime()
        logger.info(f"应用启动完成，监听 {settings.api_host}:{settings.api_port}")

    @app.on_event("shutdown")
    async def shutdown():
        """应用关闭事件"""
        logger.info("应用关闭中...")
        if app.state.runtime is not None:
            app.state.runtime.runner.stop()
            await app.state.runtime.runner.join()
        shutdown_pools()
        logger.info("应用关闭完成")

    @app.get("/health")
    async def health():
        """健康检查"""
        return {"status": "healthy"}

    return app


app = create_app()


def run() -> None:
    uvicorn.run(
        "afkbot.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
