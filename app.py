"""
assocly-api/app.py
Point d'entrée principal de l'API de gestion de l'association
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Config
from domain.errors import (
    DomainError, NotFoundError, InvalidInputError, ConflictError, InvalidStateError,
    CapacityExceededError, AuthenticationError, PermissionDeniedError
)
from infrastructure.database.session import Database
from infrastructure.database.init_db import init_db
from infrastructure.external.email_client import EmailClient, build_email_client
from api.endpoints import router as api_router, auth_router, admin_router
from logging_config import configure_from

logger = logging.getLogger("assocly")

# Correspondance erreur métier -> code HTTP
ERROR_STATUS_CODES = {
    NotFoundError: 404,
    InvalidInputError: 422,
    ConflictError: 409,
    InvalidStateError: 409,
    CapacityExceededError: 409,
    AuthenticationError: 401,
    PermissionDeniedError: 403,
}


def status_code_for(error: DomainError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_cls):
            return status_code
    return 400


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.debug(f"{request.method} {request.url.path} -> {status_code} ({exc.code}): {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers
    )


def create_app(
    config: Optional[Config] = None,
    database: Optional[Database] = None,
    email_client: Optional[EmailClient] = None
) -> FastAPI:
    """
    Construit l'application FastAPI.

    Une base ou un client email fournis par l'appelant (tests) sont utilisés
    tels quels et ne sont pas fermés à l'arrêt.
    """
    config = config or Config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application"""
        # --- Startup ---
        logger.info(f"🚀 Démarrage de {config.association_name} API")
        logger.info(f"📊 Database: {config.database_url.split('@')[-1]}")

        owns_database = database is None
        app.state.database = database or Database.from_config(config)
        app.state.email_client = email_client or build_email_client(config)
        app.state.config = config

        init_db(app.state.database, config)

        yield

        # --- Shutdown ---
        logger.info("🛑 Arrêt de l'API")
        if owns_database:
            app.state.database.dispose()

    app = FastAPI(
        title="Assocly API",
        description="API de gestion d'association : membres, cotisations et événements",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configuration CORS (pour permettre les appels depuis le frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)

    # Les routes d'administration passent en premier : leurs chemins fixes
    # (/evenements/statistiques) ne doivent pas être capturés par /evenements/{id}
    app.include_router(auth_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["Root"])
    def root():
        """Page d'accueil de l'API"""
        return {
            "service": "assocly-api",
            "version": "1.0.0",
            "status": "operational",
            "documentation": "/docs"
        }

    @app.get("/health", tags=["System"])
    def health_check():
        """Endpoint de santé pour les orchestrateurs (Docker, etc.)"""
        return {
            "status": "healthy",
            "service": "assocly-api"
        }

    return app


app_config = Config()
configure_from(app_config)
app = create_app(app_config)

if __name__ == "__main__":
    import uvicorn
    from logging_config import get_uvicorn_log_config

    log_config = get_uvicorn_log_config(log_level=app_config.log_level)

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_config=log_config
    )
