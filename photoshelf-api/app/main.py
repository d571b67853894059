# app/main.py — only app wiring, no endpoints here.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import photos
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger("api")
settings = get_settings()

app = FastAPI(title="Photoshelf API", version="0.1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# clients always get {"error": ...}, never FastAPI's {"detail": ...}
@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.error("unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "server error"})


# API routers
app.include_router(photos.api_router, prefix="/api")

# public (non-API) router for the raw files
app.include_router(photos.public_router)   # /photos/*
