import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boxleague import __version__
from boxleague.database import init_db
from boxleague.routes import analytics, delays, live, matches, players, seasons, standings

logger = logging.getLogger(__name__)

APP_NAME = "Box League API"

app = FastAPI(title=APP_NAME, version=__version__)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8081",  # Expo dev server
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(seasons.router, prefix="/api", tags=["seasons"])
app.include_router(players.router, prefix="/api", tags=["players"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(delays.router, prefix="/api", tags=["delays"])
app.include_router(live.router, prefix="/api", tags=["live"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(analytics.router, prefix="/api", tags=["analytics"])


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()

    route_count = 0
    for r in app.routes:
        path = getattr(r, "path", None)
        if path:
            methods = getattr(r, "methods", None)
            methods_str = ", ".join(sorted(methods)) if methods else "N/A"
            logger.debug("%-20s %s", methods_str, path)
            route_count += 1
    logger.info("%s %s started with %d routes", APP_NAME, __version__, route_count)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": APP_NAME, "version": __version__, "status": "healthy"}
