from fastapi import FastAPI

from app.api.routers.auth import router as auth_router
from app.api.routers.profile import router as profile_router
from app.api.routers.friends import router as friends_router
from app.api.routers.reminders import router as reminders_router
from app.api.routers.debug import router as debug_router


def create_app() -> FastAPI:
    app = FastAPI(title="Birthday Reminder API")

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(friends_router)
    app.include_router(reminders_router)
    app.include_router(debug_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app
