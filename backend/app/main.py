from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .api.routes_sources import router as sources_router
from .api.routes_chat import router as chat_router

configure_logging()
settings = get_settings()


def _cors_origins(settings: Settings) -> list[str]:
    """
    Production requires an explicit FRONTEND_ORIGIN list; elsewhere we fall
    back to "*" unless specific origins are configured.
    """
    configured = [
        o.strip()
        for o in (settings.FRONTEND_ORIGIN or "").split(",")
        if o.strip()
    ]
    if settings.ENV.lower() == "prod":
        if not configured:
            raise RuntimeError(
                "FRONTEND_ORIGIN must be set in production; refusing to start with wide-open CORS."
            )
        return configured
    if settings.CORS_ALLOW_ALL_ORIGINS or not configured:
        return ["*"]
    return configured


app = FastAPI(title="Source Watch API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(settings),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(sources_router, prefix=settings.API_PREFIX)
app.include_router(chat_router, prefix=settings.API_PREFIX)
