from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from infrastructure.logging import get_module_logger
from infrastructure.services import NotificationServiceDep, SettingsDep
from server.lifespan import lifespan

logger = get_module_logger()


handler = FastAPI(lifespan=lifespan)

handler.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@handler.get("/version")
def get_version(settings: SettingsDep):
    return {"version": settings.GIT_SHA}


@handler.get("/health")
def get_health(notifications: NotificationServiceDep):
    channels = notifications.health_check()
    return {"status": "ok" if all(channels.values()) else "degraded", "channels": channels}
