"""
Memory Vault HTTP API.
"""

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import DebugConfigResponse, HealthResponse
from .auth import router as auth_router
from .memories import router as memories_router
from .personal import router as personal_router
from .chat import router as chat_router, assistant, knowledge_base
from .admin import router as admin_router
from ..core.config import CORS_ORIGINS, VERSION, debug_enabled, get_admin_api_key, get_openai_api_key, validate_config
from ..core.db import health_check
from ..util.logging import logger

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "same-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# Initialize the FastAPI application
app = FastAPI(
    title="Memory Vault API",
    version=VERSION,
    description="Personal memory notes with a Memory Vault-only assistant",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

# Add CORS middleware to allow frontend connections
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


@app.get("/api/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()
    return HealthResponse(
        success=db_health,
        message="Memory Vault API is running" if db_health else "Database unavailable",
        version=VERSION,
        db_health=db_health,
    )


@app.get("/api/debug/config", response_model=DebugConfigResponse)
def debug_config_endpoint():
    """Effective assistant configuration; only served in debug mode."""
    if not debug_enabled():
        raise HTTPException(status_code=403, detail="Debug endpoints require DEBUG=true")

    return DebugConfigResponse(
        assistant_provider=assistant.responder.provider,
        model_name=assistant.responder.model_name,
        has_openai_key=bool(get_openai_api_key()),
        knowledge_entries=len(knowledge_base),
        admin_configured=bool(get_admin_api_key()),
        config_issues=validate_config(),
        timestamp=datetime.now(),
    )


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(memories_router, prefix="/api/memories", tags=["memories"])
app.include_router(personal_router, prefix="/api/personal/pin", tags=["personal"])
app.include_router(chat_router, prefix="/api/ai", tags=["assistant"])
app.include_router(admin_router, prefix="/api/admin", tags=["admin"])

for issue in validate_config():
    logger.warning(f"Config: {issue}")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logging.error(f"Unhandled exception: {exc}")
    content = {"detail": "Internal server error"}
    if debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(
        status_code=500,
        content=content,
    )
