from __future__ import annotations

import json
from datetime import datetime
from uuid import uuid4

from sqlalchemy import text

from app.application.ports.accounts_port import AccountsPort, PromoCodesPort
from app.domain.entities.audit import SubscriptionAuditEntry, is_repeated_event
from app.domain.exceptions import AccountNotFoundError
from app.domain.services.subscription_transitions import SubscriptionTransition
from app.infrastructure.db.mappers.accounts_mapper import map_row_to_account, map_row_to_promo_code


_ACCOUNT_COLUMNS = """
    user_id, plan_type, trial_start, subscription_id, subscription_status,
    subscription_expires_at, created_at, updated_at
"""


class SqlAccountsRepository(AccountsPort, PromoCodesPort):
    def __init__(self, engine):
        self._engine = engine

    def get_account(self, *, user_id: str):
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM public.profiles
            WHERE user_id = :user_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_account(row)

    def create_account_if_missing(self, *, user_id: str, now: datetime):
        insert_sql = """
            INSERT INTO public.profiles (
                user_id, plan_type, trial_start, subscription_status, created_at, updated_at
            ) VALUES (
                :user_id, 'free_trial', :now, 'none', :now, :now
            )
            ON CONFLICT (user_id) DO NOTHING
        """
        select_sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM public.profiles
            WHERE user_id = :user_id
            LIMIT 1
        """
        with self._engine.begin() as conn:
            conn.execute(text(insert_sql), {"user_id": user_id, "now": now})
            row = conn.execute(text(select_sql), {"user_id": user_id}).mappings().one()
        return map_row_to_account(row)

    def mark_subscription_pending(self, *, user_id: str, subscription_id: str, now: datetime) -> None:
        sql = """
            UPDATE public.profiles
            SET subscription_id = :subscription_id,
                subscription_status = 'pending',
                updated_at = :updated_at
            WHERE user_id = :user_id
        """
        with self._engine.begin() as conn:
            result = conn.execute(
                text(sql),
                {
                    "user_id": user_id,
                    "subscription_id": subscription_id,
                    "updated_at": now,
                },
            )
        if result.rowcount == 0:
            raise AccountNotFoundError("Account not found.")

    def apply_subscription_transition(
        self,
        *,
        user_id: str,
        transition: SubscriptionTransition,
        audit_entry: SubscriptionAuditEntry,
        now: datetime,
    ) -> bool:
        # Serializes deliveries for the same provider resource until commit.
        lock_sql = "SELECT pg_advisory_xact_lock(hashtext(:external_id))"
        latest_sql = """
            SELECT event_type, status
            FROM public.subscription_audit_log
            WHERE external_id = :external_id
            ORDER BY seq DESC
            LIMIT 1
        """
        audit_sql = """
            INSERT INTO public.subscription_audit_log (
                id, user_id, event_type, external_id, status, raw_payload, source, created_at
            ) VALUES (
                :id, :user_id, :event_type, :external_id, :status, CAST(:raw_payload AS jsonb), :source, :created_at
            )
        """
        update_sql = """
            UPDATE public.profiles
            SET plan_type = COALESCE(:plan_type, plan_type),
                subscription_status = :subscription_status,
                subscription_expires_at = COALESCE(:subscription_expires_at, subscription_expires_at),
                updated_at = :updated_at
            WHERE user_id = :user_id
        """
        with self._engine.begin() as conn:
            conn.execute(text(lock_sql), {"external_id": audit_entry.external_id})
            latest = conn.execute(
                text(latest_sql),
                {"external_id": audit_entry.external_id},
            ).mappings().first()
            if is_repeated_event(latest, audit_entry):
                return False

            conn.execute(
                text(audit_sql),
                {
                    "id": str(uuid4()),
                    "user_id": audit_entry.user_id,
                    "event_type": audit_entry.event_type,
                    "external_id": audit_entry.external_id,
                    "status": audit_entry.status,
                    "raw_payload": json.dumps(audit_entry.raw_payload, default=str),
                    "source": audit_entry.source,
                    "created_at": audit_entry.created_at,
                },
            )

            result = conn.execute(
                text(update_sql),
                {
                    "user_id": user_id,
                    "plan_type": transition.plan_type,
                    "subscription_status": transition.subscription_status,
                    "subscription_expires_at": transition.subscription_expires_at,
                    "updated_at": now,
                },
            )
            if result.rowcount == 0:
                # Raising inside begin() rolls back the audit row as well.
                raise AccountNotFoundError("Account not found.")
        return True

    def downgrade_expired_premium(self, *, now: datetime) -> list[str]:
        sql = """
            UPDATE public.profiles
            SET plan_type = 'free_trial',
                subscription_status = 'cancelled',
                updated_at = :now
            WHERE plan_type = 'premium'
              AND subscription_expires_at < :now
            RETURNING user_id
        """
        with self._engine.begin() as conn:
            rows = conn.execute(text(sql), {"now": now}).mappings().all()
        return [str(row["user_id"]) for row in rows]

    def count_trials_started_between(self, *, after: datetime, until: datetime) -> int:
        sql = """
            SELECT count(*) AS total
            FROM public.profiles
            WHERE plan_type = 'free_trial'
              AND trial_start > :after
              AND trial_start <= :until
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"after": after, "until": until}).mappings().one()
        return int(row["total"])

    def get_promo_code(self, *, code: str):
        sql = """
            SELECT code, discount_percent, is_active, expires_at
            FROM public.promo_codes
            WHERE upper(code) = :code
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"code": code.upper()}).mappings().first()
        if row is None:
            return None
        return map_row_to_promo_code(row)
