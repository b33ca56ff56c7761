from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Usuario autenticado pelo Supabase (claim sub do access token)."""

    id: str
    email: str | None
