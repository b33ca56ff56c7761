from __future__ import annotations

from datetime import datetime


class DomainError(Exception):
    """Base para erros de dominio."""


class AccountNotFoundError(DomainError):
    """Conta (profile) nao existe para o usuario informado."""


class InvalidAccountReferenceError(DomainError):
    """Referencia externa nao e um identificador de usuario valido."""


class InvalidPromoCodeError(DomainError):
    """Cupom inexistente, inativo ou expirado."""


class SubscriptionRequestError(DomainError):
    """Parametros invalidos para criar a assinatura."""


class PaymentProviderError(DomainError):
    """Falha ao falar com o provedor de pagamento (retentavel)."""


class WebhookConfigurationError(DomainError):
    """Segredo de assinatura do webhook nao configurado."""


class WebhookAuthenticationError(DomainError):
    """Assinatura, timestamp ou cabecalhos do webhook invalidos."""


class WebhookPayloadError(DomainError):
    """Corpo do webhook malformado."""


class CronConfigurationError(DomainError):
    """Segredo do cron nao configurado."""


class CronAuthenticationError(DomainError):
    """Segredo do cron ausente ou incorreto."""


class AiGatewayError(DomainError):
    """Falha ao encaminhar a requisicao para o gateway de IA."""


class RateLimitExceededError(DomainError):
    """Limite de requisicoes excedido para o endpoint."""

    def __init__(self, message: str, *, reset_at: datetime):
        super().__init__(message)
        self.reset_at = reset_at
