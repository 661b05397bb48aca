"""
Unified Task Proxy: application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.registry import AdapterRegistry
from api.auth import router as auth_router
from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as api_router
from api.tasks import router as tasks_router
from config.settings import config
from connectors.encryption import TokenCipher, cipher_from_config
from connectors.exchange import ExchangeBroker
from connectors.registry import ConnectorRegistry
from core.rate_limiter import RateLimiter
from database.store import InMemoryStore, KeyValueStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    *,
    store: Optional[KeyValueStore] = None,
    adapters: Optional[AdapterRegistry] = None,
    connectors: Optional[ConnectorRegistry] = None,
    cipher: Optional[TokenCipher] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    app = FastAPI(
        title="Unified Task Proxy",
        version="0.1.0",
        description="One task API over Todoist, Google Tasks and friends.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    store = store if store is not None else InMemoryStore()
    app.state.store = store
    app.state.rate_limiter = rate_limiter or RateLimiter(store)
    app.state.adapters = adapters or AdapterRegistry()
    app.state.broker = ExchangeBroker(
        store,
        connectors or ConnectorRegistry(),
        cipher or cipher_from_config(),
    )

    # Routes
    app.include_router(auth_router, prefix="/auth")
    app.include_router(tasks_router)
    app.include_router(api_router)

    logger.info(
        "Task services: %s", ", ".join(app.state.adapters.list_services()),
    )
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
