"""Utilitário para busca na web usando Tavily."""

import asyncio
import logging
from typing import Any, Dict, List

from tavily import TavilyClient

from blinko.config.settings import settings

logger = logging.getLogger(__name__)


class WebSearchTool:
    """Ferramenta para buscar informações na web."""

    def __init__(self, api_key: str | None = None, max_results: int | None = None):
        """
        Inicializa o cliente Tavily.

        Args:
            api_key: API key do Tavily (padrão: a das configurações).
            max_results: Número máximo de resultados por busca.
        """
        self.max_results = max_results or settings.web_search_max_results
        key = api_key or settings.tavily_api_key
        self.client = TavilyClient(api_key=key) if key else None

    def is_available(self) -> bool:
        """Verifica se a busca web está disponível."""
        return self.client is not None

    async def search(self, query: str, max_results: int | None = None) -> List[Dict[str, Any]]:
        """
        Busca informações na web.

        Args:
            query: Consulta de busca.
            max_results: Número máximo de resultados.

        Returns:
            Lista de resultados com título, URL e conteúdo (vazia se indisponível ou em erro).
        """
        if not self.is_available():
            logger.warning("⚠️ Busca web pedida, mas nenhuma API key do Tavily configurada")
            return []

        try:
            response = await asyncio.to_thread(
                self.client.search,
                query=query,
                max_results=max_results or self.max_results,
                search_depth="basic",
            )
        except Exception as e:
            # A busca web é um complemento: falhar aqui não deve derrubar a completion
            logger.error(f"❌ Erro ao buscar na web: {e}")
            return []

        results = []
        for item in (response or {}).get("results", []):
            results.append({
                "title": item.get("title", ""),
                "url": item.get("url", ""),
                "content": item.get("content", ""),
                "score": item.get("score", 0),
            })
        return results

    def format_results_for_prompt(self, results: List[Dict[str, Any]]) -> str:
        """
        Formata resultados de busca para inclusão no prompt.

        Args:
            results: Lista de resultados da busca.

        Returns:
            String formatada com os resultados.
        """
        if not results:
            return "No web results were found."

        formatted = "**Web search results:**\n\n"
        for i, result in enumerate(results, 1):
            formatted += f"**[{i}] {result['title']}**\n"
            formatted += f"{result['url']}\n"
            formatted += f"{result['content'][:500]}\n\n"
        return formatted
