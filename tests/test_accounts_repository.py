from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
import json

import pytest

from app.domain.entities.audit import SubscriptionAuditEntry
from app.domain.exceptions import AccountNotFoundError
from app.domain.services.subscription_transitions import SubscriptionTransition
from app.infrastructure.db.models.accounts import SubscriptionAuditLogModel
from app.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from app.infrastructure.db.repositories.rate_limit_repository import SqlRateLimitRepository
from app.infrastructure.db.seeds.seed_promo_codes import seed_promo_codes

from conftest import NOW, USER_ID


class FakeResult:
    def __init__(self, rows=None, rowcount: int = 0):
        self._rows = list(rows or [])
        self.rowcount = rowcount

    def mappings(self):
        return self

    def first(self):
        return self._rows[0] if self._rows else None

    def one(self):
        return self._rows[0]

    def all(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, results):
        self._results = list(results)
        self.statements: list[tuple[str, dict | None]] = []

    def execute(self, statement, params=None):
        self.statements.append((str(statement), params))
        return self._results.pop(0)


class FakeEngine:
    def __init__(self, results):
        self.conn = FakeConnection(results)

    @contextmanager
    def begin(self):
        yield self.conn

    @contextmanager
    def connect(self):
        yield self.conn


TRANSITION = SubscriptionTransition(
    event_type="payment_approved",
    subscription_status="authorized",
    plan_type="premium",
    subscription_expires_at=NOW + timedelta(days=31),
)

AUDIT = SubscriptionAuditEntry(
    user_id=USER_ID,
    event_type="payment_approved",
    external_id="pay-1",
    status="approved",
    raw_payload={"id": "pay-1", "status": "approved"},
    source="mercado_pago_webhook",
    created_at=NOW,
)


def _apply(engine) -> bool:
    return SqlAccountsRepository(engine).apply_subscription_transition(
        user_id=USER_ID,
        transition=TRANSITION,
        audit_entry=AUDIT,
        now=NOW,
    )


def test_transition_writes_audit_then_updates_profile():
    engine = FakeEngine([FakeResult(), FakeResult(rows=[]), FakeResult(), FakeResult(rowcount=1)])

    assert _apply(engine) is True

    lock, latest, audit, update = engine.conn.statements
    assert "pg_advisory_xact_lock" in lock[0]
    assert lock[1] == {"external_id": "pay-1"}
    assert "ORDER BY seq DESC" in latest[0]
    assert "INSERT INTO public.subscription_audit_log" in audit[0]
    assert json.loads(audit[1]["raw_payload"]) == AUDIT.raw_payload
    assert "UPDATE public.profiles" in update[0]
    assert update[1]["plan_type"] == "premium"
    assert update[1]["subscription_status"] == "authorized"


def test_redelivery_of_latest_event_skips_profile_update():
    latest = {"event_type": "payment_approved", "status": "approved"}
    engine = FakeEngine([FakeResult(), FakeResult(rows=[latest])])

    assert _apply(engine) is False
    assert len(engine.conn.statements) == 2


def test_status_change_after_earlier_event_is_applied():
    latest = {"event_type": "payment_rejected", "status": "rejected"}
    engine = FakeEngine([FakeResult(), FakeResult(rows=[latest]), FakeResult(), FakeResult(rowcount=1)])

    assert _apply(engine) is True
    assert len(engine.conn.statements) == 4


def test_transition_for_missing_profile_raises():
    engine = FakeEngine([FakeResult(), FakeResult(rows=[]), FakeResult(), FakeResult(rowcount=0)])

    with pytest.raises(AccountNotFoundError):
        _apply(engine)


def test_mark_subscription_pending_requires_existing_profile():
    engine = FakeEngine([FakeResult(rowcount=0)])

    with pytest.raises(AccountNotFoundError):
        SqlAccountsRepository(engine).mark_subscription_pending(user_id=USER_ID, subscription_id="pref-1", now=NOW)


def test_downgrade_returns_affected_user_ids():
    engine = FakeEngine([FakeResult(rows=[{"user_id": USER_ID}])])

    assert SqlAccountsRepository(engine).downgrade_expired_premium(now=NOW) == [USER_ID]
    sql, params = engine.conn.statements[0]
    assert "subscription_expires_at < :now" in sql
    assert params == {"now": NOW}


def test_get_account_maps_row():
    row = {
        "user_id": USER_ID,
        "plan_type": "premium",
        "trial_start": NOW,
        "subscription_id": "pref-1",
        "subscription_status": "authorized",
        "subscription_expires_at": NOW + timedelta(days=30),
        "created_at": NOW,
        "updated_at": NOW,
    }
    engine = FakeEngine([FakeResult(rows=[row])])

    account = SqlAccountsRepository(engine).get_account(user_id=USER_ID)

    assert account.plan_type == "premium"
    assert account.subscription_status == "authorized"


def test_get_promo_code_matches_uppercase():
    row = {"code": "GROWING10", "discount_percent": 10, "is_active": True, "expires_at": None}
    engine = FakeEngine([FakeResult(rows=[row])])

    promo = SqlAccountsRepository(engine).get_promo_code(code="growing10")

    assert promo.discount_percent == 10
    assert engine.conn.statements[0][1] == {"code": "GROWING10"}


@pytest.mark.parametrize(
    "request_count,allowed,remaining",
    [(1, True, 4), (5, True, 0), (6, False, 0)],
)
def test_rate_limit_repository_decision(request_count, allowed, remaining):
    engine = FakeEngine([FakeResult(rows=[{"window_start": NOW, "request_count": request_count}])])

    decision = SqlRateLimitRepository(engine).hit(
        user_id=USER_ID,
        endpoint="agent-chat",
        max_requests=5,
        window_seconds=60,
        now=NOW,
    )

    assert decision.allowed is allowed
    assert decision.remaining == remaining
    assert decision.reset_at == NOW + timedelta(seconds=60)


def test_seed_promo_codes_upserts_uppercase_codes():
    engine = FakeEngine([FakeResult(), FakeResult()])

    seed_promo_codes(engine, [{"code": "growing10", "discount_percent": 10}, {"code": "vip", "discount_percent": 50}])

    assert [params["code"] for _sql, params in engine.conn.statements] == ["GROWING10", "VIP"]


def test_count_trials_started_between_filters_in_sql():
    engine = FakeEngine([FakeResult(rows=[{"total": 2}])])
    after, until = NOW - timedelta(days=26), NOW - timedelta(days=25)

    assert SqlAccountsRepository(engine).count_trials_started_between(after=after, until=until) == 2
    sql, params = engine.conn.statements[0]
    assert "trial_start > :after" in sql
    assert "trial_start <= :until" in sql
    assert params == {"after": after, "until": until}


def test_audit_log_is_indexed_by_resource_and_order():
    indexes = {index.name: index for index in SubscriptionAuditLogModel.__table__.indexes}

    index = indexes["ix_subscription_audit_log_external_id_seq"]
    assert [column.name for column in index.columns] == ["external_id", "seq"]


def test_audit_and_update_share_one_transaction():
    source = Path("app/infrastructure/db/repositories/accounts_repository.py").read_text(encoding="utf-8")

    assert "pg_advisory_xact_lock" in source
    assert "COALESCE(:plan_type, plan_type)" in source
