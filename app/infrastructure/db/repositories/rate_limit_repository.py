from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import text

from app.application.dto.rate_limit import RateLimitDecision
from app.application.ports.rate_limit_port import RateLimitPort


class SqlRateLimitRepository(RateLimitPort):
    """Janela fixa por (usuario, endpoint), contada em uma unica instrucao."""

    def __init__(self, engine):
        self._engine = engine

    def hit(
        self,
        *,
        user_id: str,
        endpoint: str,
        max_requests: int,
        window_seconds: int,
        now: datetime,
    ) -> RateLimitDecision:
        sql = """
            INSERT INTO public.rate_limits (user_id, endpoint, window_start, request_count)
            VALUES (:user_id, :endpoint, :now, 1)
            ON CONFLICT (user_id, endpoint) DO UPDATE
            SET request_count = CASE
                    WHEN public.rate_limits.window_start <= :window_floor THEN 1
                    ELSE public.rate_limits.request_count + 1
                END,
                window_start = CASE
                    WHEN public.rate_limits.window_start <= :window_floor THEN :now
                    ELSE public.rate_limits.window_start
                END
            RETURNING window_start, request_count
        """
        with self._engine.begin() as conn:
            row = conn.execute(
                text(sql),
                {
                    "user_id": user_id,
                    "endpoint": endpoint,
                    "now": now,
                    "window_floor": now - timedelta(seconds=window_seconds),
                },
            ).mappings().one()

        request_count = int(row["request_count"])
        return RateLimitDecision(
            allowed=request_count <= max_requests,
            remaining=max(0, max_requests - request_count),
            reset_at=row["window_start"] + timedelta(seconds=window_seconds),
        )
