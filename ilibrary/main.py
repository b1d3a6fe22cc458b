# ilibrary/main.py
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .core.config import get_settings
from .api import auth as auth_router
from .api import users as users_router
from .api import authors as authors_router
from .api import categories as categories_router
from .api import books as books_router
from .api import author_books as author_books_router
from .api import chapters as chapters_router
from .api import favorites as favorites_router
from .api import reviews as reviews_router
from .api import feedback as feedback_router
from .api import dashboard as dashboard_router
from .api import upload as upload_router
from .schemas.error import ErrorResponse

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Ilibrary Admin API", version="0.1.0")

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
    https_only=settings.environment != "local",
)

for module in (
    auth_router,
    dashboard_router,
    users_router,
    authors_router,
    categories_router,
    books_router,
    author_books_router,
    chapters_router,
    favorites_router,
    reviews_router,
    feedback_router,
    upload_router,
):
    app.include_router(module.router, prefix="/api")


@app.get("/health", tags=["meta"])
def health():
    return {"status": "ok", "environment": settings.environment}


# Global error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(detail="Validation error", errors=errors).model_dump(),
    )
