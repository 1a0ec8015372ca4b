"""Adaptador do Google Gemini."""

import asyncio
import logging
import threading

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI

from blinko.providers.base import ProviderAdapter, model_options
from blinko.schemas.config import AIConfig
from blinko.schemas.provider import ModelOption
from blinko.utils.errors import ConfigurationError, ConnectivityError, UpstreamError

logger = logging.getLogger(__name__)

MODEL_PREFIX = "models/"

# genai.configure altera estado global do SDK; a chave e a chamada andam juntas
_sdk_lock = threading.Lock()


def _strip_prefix(name: str) -> str:
    return name[len(MODEL_PREFIX):] if name.startswith(MODEL_PREFIX) else name


class GeminiAdapter(ProviderAdapter):
    """
    Google Gemini via SDK google-generativeai.

    O endpoint é ignorado: o SDK conhece a URL do serviço. Apenas a API key importa.
    """

    name = "Gemini"

    async def _call(self, api_key: str | None, func, *args, **kwargs):
        """
        Executa uma chamada síncrona do SDK fora do event loop, mapeando os erros.

        A chave é configurada e usada sob o mesmo lock, para que chamadas
        concorrentes com chaves diferentes (chat e embedding) não se misturem.
        """
        if not api_key:
            raise ConfigurationError("API key do Gemini não configurada")

        def run():
            with _sdk_lock:
                genai.configure(api_key=api_key)
                return func(*args, **kwargs)

        try:
            return await asyncio.to_thread(run)
        except (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded) as e:
            raise ConnectivityError(self.name, details={"reason": str(e)}) from e
        except google_exceptions.GoogleAPIError as e:
            raise UpstreamError(self.name, str(e)) from e

    async def test_connection(self, endpoint: str | None, api_key: str | None = None) -> bool:
        models = await self.list_models(endpoint, api_key)
        if not models:
            raise UpstreamError(self.name, "catálogo de modelos vazio")
        return True

    async def list_models(self, endpoint: str | None, api_key: str | None = None) -> list[ModelOption]:
        models = await self._call(api_key, lambda: list(genai.list_models()))
        return model_options(_strip_prefix(model.name) for model in models)

    async def embed(
        self,
        endpoint: str | None,
        text: str,
        model: str,
        api_key: str | None = None,
    ) -> list[float]:
        model_name = model if model.startswith(MODEL_PREFIX) else f"{MODEL_PREFIX}{model}"
        result = await self._call(
            api_key,
            genai.embed_content,
            model=model_name,
            content=text,
            task_type="retrieval_document",
        )
        embedding = result.get("embedding") if isinstance(result, dict) else None
        if not embedding:
            raise UpstreamError(self.name, "embedding vazio")
        return list(embedding)

    def chat_model(self, config: AIConfig, model: str | None = None) -> BaseChatModel:
        model_name = model or config.ai_model
        if not model_name:
            raise ConfigurationError("Nenhum modelo de IA configurado")
        if not config.ai_api_key:
            raise ConfigurationError("API key do Gemini não configurada")
        return ChatGoogleGenerativeAI(
            model=model_name,
            google_api_key=config.ai_api_key,
            temperature=0.7,
        )
