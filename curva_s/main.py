import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .db import close_pool, initialize_database, open_pool, pool
from .routers import curva_s

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    open_pool()  # open DB pool at startup
    database_available = True
    try:
        initialize_database()
    except Exception as exc:  # pragma: no cover - defensive fallback for local dev
        database_available = False
        logger.warning("Database initialization failed; continuing with fixture data: %s", exc)
    app.state.database_available = database_available
    try:
        yield
    finally:
        close_pool()  # close pool at shutdown


app = FastAPI(
    title="Curva S Backend",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# Allow any localhost/127.* origin for dev tools (Vite/Next/Storybook, etc.)
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_origin_regex=r".*",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(curva_s.router)


@app.get("/api/health")
def health():
    return {"ok": True}


# DB connectivity quick-check
@app.get("/api/db/ping")
def db_ping():
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("select 'ok'::text")
            (status,) = cur.fetchone()
            return {"db": status}
