# groupchat/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from . import config
from .database import engine, init_db
from .errors import register_exception_handlers
from .routers import auth, groups

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)  # create tables and seed the default group
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    yield
    engine.dispose()
    logger.info("Database connection closed.")


def create_app() -> FastAPI:
    app = FastAPI(title="Group Chat", lifespan=lifespan)

    register_exception_handlers(app)
    app.include_router(auth.authRoutes)
    app.include_router(groups.router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root() -> dict:
        return {"msg": "welcome to the group chat service"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("groupchat.main:app", host=config.HOST, port=config.PORT)
