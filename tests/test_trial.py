from __future__ import annotations

from datetime import timedelta
import unittest

from app.domain.services.trial import TRIAL_DAYS, evaluate, trial_ends_at, trial_start_window

from conftest import NOW, make_account


class TrialEvaluationTests(unittest.TestCase):
    def test_trial_is_active_one_second_before_thirty_days(self):
        account = make_account(trial_start=NOW - timedelta(days=29, hours=23, minutes=59, seconds=59))

        state = evaluate(account, NOW)

        self.assertFalse(state.is_premium)
        self.assertTrue(state.is_trial_active)
        self.assertFalse(state.is_trial_expired)
        self.assertEqual(state.days_left_in_trial, 1)

    def test_trial_expires_exactly_at_thirty_days(self):
        account = make_account(trial_start=NOW - timedelta(days=TRIAL_DAYS))

        state = evaluate(account, NOW)

        self.assertFalse(state.is_trial_active)
        self.assertTrue(state.is_trial_expired)
        self.assertEqual(state.days_left_in_trial, 0)

    def test_days_left_never_goes_negative(self):
        account = make_account(trial_start=NOW - timedelta(days=90))

        state = evaluate(account, NOW)

        self.assertEqual(state.days_left_in_trial, 0)
        self.assertTrue(state.is_trial_expired)

    def test_missing_trial_start_counts_from_now(self):
        account = make_account(trial_start=None)

        state = evaluate(account, NOW)

        self.assertTrue(state.is_trial_active)
        self.assertFalse(state.is_trial_expired)
        self.assertEqual(state.days_left_in_trial, TRIAL_DAYS)

    def test_premium_ignores_trial_clock(self):
        account = make_account(
            plan_type="premium",
            trial_start=NOW - timedelta(days=120),
            subscription_status="authorized",
            subscription_expires_at=NOW - timedelta(days=1),
        )

        state = evaluate(account, NOW)

        self.assertTrue(state.is_premium)
        self.assertFalse(state.is_trial_active)
        self.assertFalse(state.is_trial_expired)
        self.assertEqual(state.days_left_in_trial, 0)

    def test_trial_start_window_for_five_days_left(self):
        after, until = trial_start_window(5, NOW)

        self.assertEqual(after, NOW - timedelta(days=26))
        self.assertEqual(until, NOW - timedelta(days=25))

    def test_trial_started_at_window_end_has_five_days_left(self):
        _after, until = trial_start_window(5, NOW)

        self.assertEqual(evaluate(make_account(trial_start=until), NOW).days_left_in_trial, 5)

    def test_trial_started_just_after_window_start_has_five_days_left(self):
        after, _until = trial_start_window(5, NOW)
        account = make_account(trial_start=after + timedelta(seconds=1))

        self.assertEqual(evaluate(account, NOW).days_left_in_trial, 5)

    def test_trial_ends_at_adds_thirty_days(self):
        self.assertEqual(trial_ends_at(NOW), NOW + timedelta(days=30))


if __name__ == "__main__":
    unittest.main()
