from __future__ import annotations

from typing import Any, Protocol


class AiGatewayPort(Protocol):
    def forward(self, *, feature: str, user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        ...
