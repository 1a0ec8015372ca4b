"""Entry point da aplicação FastAPI."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blinko.config.database import close_db, init_db
from blinko.config.settings import settings
from blinko.core.dependencies import rebuild_scope
from blinko.services.rebuild_job import RebuildEmbeddingJob
from blinko.utils.errors import AppError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Gerencia o ciclo de vida da aplicação.

    Inicializa recursos no startup e limpa no shutdown.
    """
    app.state.ready = False
    settings.create_storage_dirs()

    # Tentar inicializar banco com retry
    max_retries = 5
    retry_delay = 2

    for attempt in range(max_retries):
        try:
            await init_db()
            logger.info("✅ Banco de dados inicializado com sucesso")
            break
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"⚠️ Erro ao inicializar banco (tentativa {attempt + 1}/{max_retries}): {e}")
                logger.info(f"🔄 Tentando novamente em {retry_delay} segundos...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error(f"❌ Erro ao inicializar banco após {max_retries} tentativas: {e}")
                logger.warning("⚠️ Aplicação continuará sem inicializar banco (pode causar erros)")

    app.state.ready = True
    logger.info(f"✅ Aplicação pronta para receber requisições na porta {settings.port}")

    yield

    # Shutdown
    app.state.ready = False
    await app.state.rebuild_job.shutdown()
    await close_db()


def create_application(rebuild_job: RebuildEmbeddingJob | None = None) -> FastAPI:
    """
    Factory para criar a aplicação FastAPI.

    Args:
        rebuild_job: Controlador do rebuild (padrão: um ligado ao banco da aplicação).
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.ready = False
    app.state.rebuild_job = rebuild_job or RebuildEmbeddingJob(rebuild_scope)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Middleware para logar todas as requisições."""
        response = await call_next(request)
        logger.info(f"🌐 {request.method} {request.url.path} - Status: {response.status_code}")
        return response

    logger.debug(f"🌐 [CORS] Origens permitidas: {settings.allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Registra todas as rotas da aplicação."""

    def status_payload(request: Request) -> dict | JSONResponse:
        if not request.app.state.ready:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "starting", "message": "Aplicação ainda está iniciando"},
            )
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/", tags=["Root"])
    async def root(request: Request):
        """
        Endpoint raiz da aplicação.

        Retorna status 200 quando a aplicação está pronta, 503 se ainda estiver iniciando.
        """
        return status_payload(request)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check: 200 quando pronta, 503 durante o startup."""
        return status_payload(request)

    from blinko.api.routes import ai

    app.include_router(ai.router)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Handler para erros customizados da aplicação."""
        logger.warning(f"⚠️ {request.url.path}: {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handler global de exceções."""
        logger.exception(f"❌ Erro não tratado em {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Erro interno do servidor",
                "code": "INTERNAL_ERROR",
                "details": {"reason": str(exc)} if settings.debug else {},
            },
        )


app = create_application()
