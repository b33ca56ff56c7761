from __future__ import annotations

from datetime import timedelta
import time

import jwt
import pytest
from fastapi import HTTPException

from app.api import deps
from app.api.deps import require_entitlement
from app.application.use_cases.check_entitlement import CheckEntitlementUseCase
from app.domain.entities.user import User
from app.infrastructure.security.token_service import SupabaseTokenService

from conftest import NOW, USER_ID, make_account


def _user() -> User:
    return User(id=USER_ID, email="ana@example.com")


def _use_case(accounts_port) -> CheckEntitlementUseCase:
    return CheckEntitlementUseCase(accounts_port=accounts_port, clock=lambda: NOW)


def test_expired_trial_is_blocked_with_trial_expired_flag(accounts_port):
    accounts_port.add(make_account(trial_start=NOW - timedelta(days=31)))
    dependency = require_entitlement("any")

    with pytest.raises(HTTPException) as exc_info:
        dependency(user=_user(), use_case=_use_case(accounts_port))

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail["trial_expired"] is True
    assert exc_info.value.detail["error"]


def test_active_trial_is_blocked_from_premium_only_features(accounts_port):
    accounts_port.add(make_account(trial_start=NOW - timedelta(days=1)))
    dependency = require_entitlement("premium")

    with pytest.raises(HTTPException) as exc_info:
        dependency(user=_user(), use_case=_use_case(accounts_port))

    assert exc_info.value.status_code == 403
    assert "trial_expired" not in exc_info.value.detail


def test_active_trial_passes_any_level(accounts_port):
    accounts_port.add(make_account(trial_start=NOW - timedelta(days=1)))

    user = require_entitlement("any")(user=_user(), use_case=_use_case(accounts_port))

    assert user.id == USER_ID


def test_missing_account_is_not_found(accounts_port):
    with pytest.raises(HTTPException) as exc_info:
        require_entitlement("any")(user=_user(), use_case=_use_case(accounts_port))

    assert exc_info.value.status_code == 404


def test_get_current_user_decodes_bearer_token(monkeypatch: pytest.MonkeyPatch):
    secret = "supabase-jwt-secret-with-enough-length"
    monkeypatch.setattr(deps, "_get_token_service", lambda: SupabaseTokenService(jwt_secret=secret))
    token = jwt.encode(
        {"sub": USER_ID, "email": "ana@example.com", "aud": "authenticated", "exp": int(time.time()) + 60},
        secret,
        algorithm="HS256",
    )

    user = deps.get_current_user(authorization=f"Bearer {token}")

    assert user == User(id=USER_ID, email="ana@example.com")


@pytest.mark.parametrize("authorization", [None, "Token abc", "Bearer "])
def test_get_current_user_rejects_bad_header(authorization):
    with pytest.raises(HTTPException) as exc_info:
        deps.get_current_user(authorization=authorization)

    assert exc_info.value.status_code == 401
