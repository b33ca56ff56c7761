from __future__ import annotations

from sqlalchemy import text


DEFAULT_PROMO_CODES = (
    {"code": "GROWING10", "discount_percent": 10},
    {"code": "BEMVINDO20", "discount_percent": 20},
)


def seed_promo_codes(engine, promo_codes=DEFAULT_PROMO_CODES) -> None:
    with engine.begin() as conn:
        for promo in promo_codes:
            conn.execute(
                text(
                    """
                    INSERT INTO public.promo_codes (code, discount_percent, is_active, expires_at)
                    VALUES (:code, :discount_percent, true, NULL)
                    ON CONFLICT (code) DO UPDATE
                    SET discount_percent = EXCLUDED.discount_percent,
                        is_active = EXCLUDED.is_active
                    """
                ),
                {
                    "code": promo["code"].upper(),
                    "discount_percent": int(promo["discount_percent"]),
                },
            )
