import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coffee_bracket.database import init_db
from coffee_bracket.routes import bracket, heats, tournaments

APP_NAME = "Coffee Bracket API"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
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

# Stateless bracket builder (client holds the bracket)
app.include_router(bracket.router, prefix="/api", tags=["bracket"])

# Stored tournaments, competitors and rounds
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])

# Heat runtime (segments, judges, scores, completion)
app.include_router(heats.router, prefix="/api", tags=["heats"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s started with %s routes", APP_NAME, len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
