from __future__ import annotations

from datetime import datetime
from typing import Protocol


class WebhookSignaturePort(Protocol):
    def check_headers(self, *, signature_header: str | None, request_id: str | None) -> None:
        """Falha antes de ler o corpo: segredo ausente ou cabecalhos faltando."""
        ...

    def verify(
        self,
        *,
        signature_header: str | None,
        request_id: str | None,
        resource_id: str,
        now: datetime,
    ) -> None:
        ...
