"""
SmartHive API application.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smarthive.api.routes import admin, auth, chat, sensor_data, smart_hive, user
from smarthive.core.config import get_settings
from smarthive.core.db import get_engine, init_models
from smarthive.core.errors import register_error_handlers
from smarthive.core import utils  # noqa: F401  configures logging

logger = logging.getLogger(__name__)


# Application lifecycle
@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = get_engine()
    await init_models(engine)
    logger.info(f"{app.title} started")

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=f"{settings.project_name} API",
        description="Accounts, purchase approval, hive sensor data, apiary locations and chat relay",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(smart_hive.router)
    app.include_router(sensor_data.router)
    app.include_router(user.router)
    app.include_router(chat.router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "smarthive-api"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
