from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class PaidFeatureResponse(BaseModel):
    feature: str
    result: dict[str, Any]
