"""Configuração do banco de dados PostgreSQL com SQLAlchemy."""

import logging
import os
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .settings import settings

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """
    Obtém a URL do banco de dados, convertendo se necessário.

    Provedores de hospedagem costumam expor DATABASE_URL no formato
    postgresql://, mas o driver assíncrono precisa de postgresql+asyncpg://.
    """
    db_url = os.getenv("DATABASE_URL") or settings.database_url

    if db_url.startswith("postgresql://") and "+asyncpg" not in db_url:
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return db_url


# Engine assíncrono do SQLAlchemy
engine = create_async_engine(
    get_database_url(),
    echo=settings.debug,
    future=True,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
)

# Session factory assíncrona
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Classe base para todos os models SQLAlchemy."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency para obter sessão do banco de dados.

    Yields:
        AsyncSession: Sessão do banco de dados.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Inicializa o banco de dados criando a extensão vector e as tabelas."""
    # Importa os models para registrá-los no metadata
    from blinko import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        logger.info("✅ Conexão com banco de dados estabelecida")

        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Tabelas criadas")


async def close_db() -> None:
    """Fecha as conexões do banco de dados."""
    await engine.dispose()
