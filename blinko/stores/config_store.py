"""Leitura da configuração global persistida."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blinko.models.config import Config
from blinko.schemas.config import AIConfig


class ConfigStore:
    """Lê a configuração de IA da tabela de configs a cada chamada."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_ai_config(self) -> AIConfig:
        """
        Monta a configuração de IA a partir dos pares chave/valor.

        Returns:
            AIConfig: Configuração atual (chaves desconhecidas são ignoradas).
        """
        result = await self.db.execute(select(Config.key, Config.config))
        values = {key: value for key, value in result.all() if value is not None}
        return AIConfig.model_validate(values)
