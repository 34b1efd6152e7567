"""Execution timing window.

Volatility sets the base window (faster in turbulent markets); a confident
trading history shortens it; a stated preferred hold time caps it.
"""

from cipherplan.models import MarketState, UserHistory, UserPreferences

_DEFAULT_WINDOW_SEC = 300

#: (exclusive lower bound on volatility_bps, window seconds), checked in order.
_VOLATILITY_WINDOWS: tuple[tuple[int, int], ...] = (
    (500, 60),
    (200, 120),
)

#: (min total_trades, min win_rate_bps, numerator, denominator), checked in order.
_CONFIDENCE_TIERS: tuple[tuple[int, int, int, int], ...] = (
    (100, 6_000, 1, 2),
    (20, 5_500, 3, 4),
)


def base_window(volatility_bps: int) -> int:
    for threshold, window in _VOLATILITY_WINDOWS:
        if volatility_bps > threshold:
            return window
    return _DEFAULT_WINDOW_SEC


def confidence_factor(history: UserHistory) -> tuple[int, int]:
    """Window multiplier as an integer fraction.

    Tiers require both enough trades and a high enough win rate, so raising
    either never moves the history into a longer-window tier.
    """
    for min_trades, min_win_rate, numerator, denominator in _CONFIDENCE_TIERS:
        if history.total_trades >= min_trades and history.win_rate_bps >= min_win_rate:
            return numerator, denominator
    return 1, 1


def compute_timing_window(
    preferences: UserPreferences,
    history: UserHistory,
    market: MarketState,
) -> int:
    numerator, denominator = confidence_factor(history)
    window = base_window(market.volatility_bps) * numerator // denominator
    if preferences.preferred_hold_time_sec > 0:
        window = min(window, preferences.preferred_hold_time_sec)
    return window
