from __future__ import annotations

import hmac
import logging

from app.application.dto.billing import SweepExpiredSubscriptionsInput, SweepExpiredSubscriptionsOutput
from app.application.ports.accounts_port import AccountsPort
from app.domain.exceptions import CronAuthenticationError, CronConfigurationError
from app.domain.services.trial import trial_start_window

from .common import Clock, utcnow


logger = logging.getLogger(__name__)

TRIAL_REMINDER_DAYS = 5


class SweepExpiredSubscriptionsUseCase:
    def __init__(self, *, accounts_port: AccountsPort, cron_secret: str, clock: Clock = utcnow):
        self._accounts_port = accounts_port
        self._cron_secret = cron_secret
        self._clock = clock

    def execute(self, command: SweepExpiredSubscriptionsInput) -> SweepExpiredSubscriptionsOutput:
        if not self._cron_secret:
            logger.error("expiry_sweeper: cron_secret_not_configured")
            raise CronConfigurationError("Server configuration error.")
        provided = command.cron_secret or ""
        if not hmac.compare_digest(provided.encode("utf-8"), self._cron_secret.encode("utf-8")):
            logger.warning("expiry_sweeper: unauthorized_attempt")
            raise CronAuthenticationError("Unauthorized.")

        now = self._clock()
        downgraded = self._accounts_port.downgrade_expired_premium(now=now)
        for user_id in downgraded:
            logger.info("expiry_sweeper: downgraded user_id=%s", user_id)

        after, until = trial_start_window(TRIAL_REMINDER_DAYS, now)
        ending_soon = self._accounts_port.count_trials_started_between(after=after, until=until)
        logger.info(
            "expiry_sweeper: finished expired=%s trial_ending_soon=%s",
            len(downgraded),
            ending_soon,
        )
        return SweepExpiredSubscriptionsOutput(
            expired_count=len(downgraded),
            trial_ending_soon_count=ending_soon,
        )
