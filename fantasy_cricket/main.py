# fantasy_cricket/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import get_settings
from .core.logging import configure_logging
from .routers import admin, bets, health, long_term, matches, templates
from .services.registry import Registry

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    # tests may install a registry of their own before startup
    if getattr(app.state, "registry", None) is None:
        app.state.registry = Registry.from_settings(settings)
    yield

app = FastAPI(title="Fantasy Cricket API", version="0.1.0", lifespan=lifespan)

# Routers
app.include_router(health.router)
app.include_router(matches.router)
app.include_router(bets.router)
app.include_router(templates.router)
app.include_router(admin.router)
app.include_router(long_term.router)

@app.get("/")
def root():
    return {"service": "fantasy-cricket-api"}
