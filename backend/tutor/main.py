# tutor/main.py
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tutor.config import settings
from tutor.core.db import init_db, close_db
from tutor.core.errors import AppError, ValidationFailed
from tutor.services.registry import build_services

from tutor.api.v1.routers import auth, user, session as session_router, voice, avatar, video, heygen
from tutor.api.v1.routers.ws_session import router as ws_session_router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# Clients, orchestrator, session service and the realtime channel
app.state.services = build_services(settings)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    body = {"success": False, "error": exc.message}
    if isinstance(exc, ValidationFailed) and exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"success": False, "errors": errors})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[app] unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.on_event("startup")
async def on_startup():
    await init_db()
    status = app.state.services.orchestrator.service_status()
    logger.info("[startup] providers: %s", status)


@app.on_event("shutdown")
async def on_shutdown():
    await app.state.services.streams.manager.close()
    await close_db()


# REST
app.include_router(auth.router, prefix="/api")
app.include_router(user.router, prefix="/api")
app.include_router(session_router.router, prefix="/api")
app.include_router(voice.router, prefix="/api")
app.include_router(avatar.router, prefix="/api")
app.include_router(video.router, prefix="/api")
app.include_router(heygen.router, prefix="/api")

# WebSocket
app.include_router(ws_session_router)


@app.get("/healthz")
def healthz():
    return {"ok": True}
