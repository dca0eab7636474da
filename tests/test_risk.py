"""Property-based tests for the consecutive loss tracker and limit monitor.

Uses Hypothesis to check the streak counter and threshold notification
policies against arbitrary win/loss sequences.
"""

from decimal import Decimal

import pytest
from hypothesis import given, strategies as st, settings

from binary_ledger.models import LedgerState, Severity
from binary_ledger.risk import (
    ConsecutiveLossTracker,
    LimitKind,
    NotificationPolicy,
    TradingLimitMonitor,
)


class TestConsecutiveLossCounterCorrectness:
    """Counter equals the trailing losses of the sequence."""

    @given(sequence=st.lists(st.booleans(), min_size=1, max_size=50))
    @settings(max_examples=100)
    def test_counter_equals_trailing_losses(self, sequence: list):
        state = LedgerState()
        state.settings.max_consecutive_losses = 1000
        tracker = ConsecutiveLossTracker(state)

        for is_win in sequence:
            if is_win:
                tracker.record_win()
            else:
                tracker.record_loss()

        trailing_losses = 0
        for is_win in reversed(sequence):
            if is_win:
                break
            trailing_losses += 1

        assert tracker.consecutive_losses == trailing_losses, (
            f"Expected {trailing_losses} trailing losses, got {tracker.consecutive_losses}"
        )

    @given(
        losses_before=st.integers(min_value=1, max_value=2),
        losses_after=st.integers(min_value=0, max_value=2)
    )
    @settings(max_examples=50)
    def test_win_resets_counter_to_zero(self, losses_before: int, losses_after: int):
        tracker = ConsecutiveLossTracker(LedgerState())

        for _ in range(losses_before):
            tracker.record_loss()
        tracker.record_win()

        assert tracker.consecutive_losses == 0

        for _ in range(losses_after):
            tracker.record_loss()

        assert tracker.consecutive_losses == losses_after


class TestPauseBehaviour:
    """Pause is set at the threshold and stays set."""

    @given(limit=st.integers(min_value=1, max_value=10))
    @settings(max_examples=50)
    def test_pause_set_exactly_at_limit(self, limit: int):
        state = LedgerState()
        state.settings.max_consecutive_losses = limit
        tracker = ConsecutiveLossTracker(state)

        for _ in range(limit - 1):
            assert tracker.record_loss() is False
        assert not tracker.should_halt_trading

        assert tracker.record_loss() is True
        assert tracker.should_halt_trading
        assert state.is_paused

    def test_pause_is_sticky_across_wins(self):
        state = LedgerState()
        tracker = ConsecutiveLossTracker(state)
        for _ in range(3):
            tracker.record_loss()

        tracker.record_win()

        assert state.is_paused is True
        assert state.consecutive_losses == 0

    def test_further_losses_do_not_retrigger(self):
        tracker = ConsecutiveLossTracker(LedgerState())
        results = [tracker.record_loss() for _ in range(5)]

        assert results == [False, False, True, False, False]

    def test_reset_clears_counter_and_pause(self):
        state = LedgerState()
        tracker = ConsecutiveLossTracker(state)
        for _ in range(3):
            tracker.record_loss()

        tracker.reset()

        assert tracker.get_status() == {
            "consecutive_losses": 0,
            "max_consecutive_losses": 3,
            "is_paused": False,
        }

    @pytest.mark.parametrize("new_max,expected_paused,lifted", [
        (2, True, False),
        (3, True, False),
        (4, False, True),
    ])
    def test_apply_limit(self, new_max, expected_paused, lifted):
        state = LedgerState()
        tracker = ConsecutiveLossTracker(state)
        for _ in range(3):
            tracker.record_loss()
        state.settings.max_consecutive_losses = new_max

        assert tracker.apply_limit() is lifted
        assert state.is_paused is expected_paused
        assert state.consecutive_losses == 3

    def test_apply_limit_never_starts_pause(self):
        state = LedgerState()
        tracker = ConsecutiveLossTracker(state)
        tracker.record_loss()
        state.settings.max_consecutive_losses = 1

        assert tracker.apply_limit() is False
        assert state.is_paused is False


def _state(profit: str = "0", streak: int = 0) -> LedgerState:
    state = LedgerState()
    state.today_stats.profit = Decimal(profit)
    state.consecutive_losses = streak
    return state


class TestTradingLimitMonitor:
    """Threshold checks are independent and non-exclusive."""

    def test_nothing_crossed(self):
        monitor = TradingLimitMonitor()

        assert monitor.check(_state("100", 1)) == []

    @pytest.mark.parametrize("profit,expected", [
        ("500", Severity.SUCCESS),
        ("750.25", Severity.SUCCESS),
        ("-300", Severity.DANGER),
        ("-1000", Severity.DANGER),
    ])
    def test_thresholds_are_inclusive(self, profit, expected):
        monitor = TradingLimitMonitor()

        notes = monitor.check(_state(profit))

        assert [n.severity for n in notes] == [expected]

    def test_loss_limit_and_streak_together(self):
        monitor = TradingLimitMonitor()

        notes = monitor.check(_state("-300", 3))

        assert [n.severity for n in notes] == [Severity.DANGER, Severity.WARNING]
        assert notes[1].message == "Trading paused after 3 consecutive losses"

    @given(repeats=st.integers(min_value=2, max_value=10))
    @settings(max_examples=20)
    def test_level_policy_repeats(self, repeats: int):
        monitor = TradingLimitMonitor(NotificationPolicy.LEVEL)
        state = _state("600")

        fired = sum(len(monitor.check(state)) for _ in range(repeats))

        assert fired == repeats

    @given(repeats=st.integers(min_value=2, max_value=10))
    @settings(max_examples=20)
    def test_edge_policy_fires_once(self, repeats: int):
        monitor = TradingLimitMonitor(NotificationPolicy.EDGE)
        state = _state("600")

        fired = sum(len(monitor.check(state)) for _ in range(repeats))

        assert fired == 1
        assert monitor.latched == frozenset({LimitKind.PROFIT_TARGET})

    def test_edge_policy_rearms_when_cleared(self):
        monitor = TradingLimitMonitor(NotificationPolicy.EDGE)

        assert len(monitor.check(_state("600"))) == 1
        assert monitor.check(_state("100")) == []
        assert len(monitor.check(_state("600"))) == 1

    def test_rearm_forgets_latched(self):
        monitor = TradingLimitMonitor(NotificationPolicy.EDGE)
        state = _state("600")
        monitor.check(state)

        monitor.rearm()

        assert len(monitor.check(state)) == 1
