# app.py
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from . import endpoints
from .auth import router as auth_router
from .config import config
from .middleware import route_gate

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Auth Camera Demo",
    description="OIDC login plus live object and face detection over a camera feed",
    version="1.0.0"
)

app.middleware("http")(route_gate)

# Server-held session, signed cookie
app.add_middleware(
    SessionMiddleware,
    secret_key=config["AUTH0_SECRET"],
    session_cookie="__session",
    max_age=config["SESSION_MAX_AGE"],
    https_only=config["APP_BASE_URL"].startswith("https://"),
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config["APP_BASE_URL"]],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(auth_router)
app.include_router(endpoints.router)


@app.get("/")
async def index():
    return {
        "name": app.title,
        "login_url": "/api/auth/login",
        "logout_url": "/api/auth/logout",
        "profile_url": "/api/auth/me",
        "camera_url": "/api/camera/status",
    }


@app.on_event("shutdown")
async def shutdown_event():
    # Release the camera and cancel any pending detection cycle
    endpoints.controller.shutdown()
    logger.info("Camera controller shut down")


def main():
    uvicorn.run("authcam.app:app", host=config["HOST"], port=config["PORT"])


if __name__ == "__main__":
    main()
