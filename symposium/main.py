import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import symposium.config.config as configs
from symposium.api.v1.route import api_router as MainRouter
from symposium.client.llm.chatgpt import CompletionInvoker
from symposium.db import models  # noqa: F401
from symposium.db.seed import seed_preset_personas
from symposium.db.session import Base, build_engine, build_session_factory
from symposium.service.auth.auth import EmailAllowlist
from symposium.service.realtime.broker import build_broker
from symposium.service.room.store import RoomStore

logger = logging.getLogger(__name__)
logging.basicConfig(level=configs.LOG_LEVEL)


def create_app(store: RoomStore = None, invoker: CompletionInvoker = None, broker=None, allowlist: EmailAllowlist = None) -> FastAPI:
    app = FastAPI(title="symposium", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if store is None:
        store = RoomStore(build_session_factory(build_engine(configs.DATABASE_URL)))
    app.state.store = store
    app.state.invoker = invoker or CompletionInvoker(configs.OPENAI_API_KEY)
    app.state.broker = broker or build_broker(configs.REDIS_URL)
    app.state.allowlist = allowlist or EmailAllowlist(
        configs.ALLOWED_EMAILS,
        configs.ALLOWED_DOMAINS,
        development=configs.APP_ENV == "development",
    )

    app.include_router(router=MainRouter, prefix="/api/v1")

    @app.on_event("startup")
    def create_tables() -> None:
        Base.metadata.create_all(bind=app.state.store.engine)
        seed_preset_personas(app.state.store.session_factory)
        logger.info("Tables created successfully.")
        if not app.state.invoker.configured:
            logger.warning("OPENAI_API_KEY is not set; assistant turns will fail")

    @app.on_event("shutdown")
    async def close_broker() -> None:
        await app.state.broker.close()

    return app


app = create_app()
