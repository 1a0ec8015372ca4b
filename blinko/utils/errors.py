"""Custom exception classes."""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class para erros da aplicação."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inicializa o erro.

        Args:
            message: Mensagem de erro amigável para o usuário.
            code: Código único do erro.
            status_code: Status HTTP code.
            details: Detalhes adicionais do erro.
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Converte o erro para dicionário."""
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class NotFoundError(AppError):
    """Recurso não encontrado."""

    def __init__(self, resource: str, details: Optional[Dict] = None):
        super().__init__(
            message=f"{resource} não encontrado(a)",
            code="NOT_FOUND",
            status_code=404,
            details=details,
        )


class ValidationError(AppError):
    """Erro de validação."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details=details,
        )


class ConfigurationError(AppError):
    """Configuração de IA ausente ou inválida."""

    def __init__(self, message: str = "Nenhum provedor de IA configurado", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=400,
            details=details,
        )


class ConnectivityError(AppError):
    """Provedor externo inacessível."""

    def __init__(self, service: str, details: Optional[Dict] = None):
        super().__init__(
            message=f"Não foi possível conectar a {service}",
            code="CONNECTIVITY_ERROR",
            status_code=503,
            details=details,
        )


class UpstreamError(AppError):
    """Provedor externo respondeu, mas rejeitou a requisição ou enviou payload inválido."""

    def __init__(self, service: str, reason: str = "", details: Optional[Dict] = None):
        message = f"Resposta inválida de {service}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="UPSTREAM_ERROR",
            status_code=502,
            details=details,
        )
