from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Error that maps directly onto a JSON response."""

    status = 500
    default_message = "Erro interno do servidor"

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"error": self.message, **self.extra}


class InvalidInput(ApiError):
    status = 400
    default_message = "Dados inválidos"

    def __init__(self, message: str | None = None, fields: dict | None = None):
        if fields:
            super().__init__(message, fields=fields)
        else:
            super().__init__(message)


class SignatureInvalid(ApiError):
    status = 400
    default_message = "Assinatura do webhook inválida"


class AuthenticationFailed(ApiError):
    status = 401
    default_message = "Autenticação necessária"


class Forbidden(ApiError):
    status = 403
    default_message = "Acesso negado"


class NotFound(ApiError):
    status = 404
    default_message = "Registro não encontrado"


class Conflict(ApiError):
    status = 409
    default_message = "Registro já existe"


class RateLimited(ApiError):
    status = 429
    default_message = "Muitas tentativas. Aguarde e tente novamente."


class UpstreamError(ApiError):
    status = 502
    default_message = "Falha no provedor externo"
