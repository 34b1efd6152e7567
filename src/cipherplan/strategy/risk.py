"""Risk level scoring on a 0-1000 scale.

risk_level = clamp(risk_appetite + history_adjustment + volatility_bps // 10
                   [+ max_drawdown_bps // 20], 0, 1000)

Every term is non-decreasing in ``risk_appetite`` and ``volatility_bps`` and
the clamp is monotonic, so raising either input never lowers the result.
"""

from cipherplan.models import (
    ExecutionMode,
    MarketState,
    RiskClass,
    UserHistory,
    UserPreferences,
)

RISK_LEVEL_MAX = 1_000

_NEGATIVE_PNL_PENALTY = 100
_LOW_WIN_RATE_BPS = 5_000
_LOW_WIN_RATE_PENALTY = 60
_GOOD_HISTORY_CREDIT = 40
_VOLATILITY_DIVISOR = 10
_DRAWDOWN_DIVISOR = 20

#: (exclusive lower bound on risk_level, mode), checked in order.
_MODE_THRESHOLDS: tuple[tuple[int, ExecutionMode], ...] = (
    (800, ExecutionMode.MAX_GHOST),
    (400, ExecutionMode.STEALTH),
)

_LOW_RISK_CEILING = 300
_HIGH_RISK_FLOOR = 700


def history_adjustment(history: UserHistory) -> int:
    """Signed risk adjustment from trading history.

    Losing recently weighs heaviest, then a sub-50% win rate; otherwise a
    profitable history earns a small credit.
    """
    if history.recent_pnl < 0:
        return _NEGATIVE_PNL_PENALTY
    if history.win_rate_bps < _LOW_WIN_RATE_BPS:
        return _LOW_WIN_RATE_PENALTY
    return -_GOOD_HISTORY_CREDIT


def compute_risk_level(
    preferences: UserPreferences,
    history: UserHistory,
    market: MarketState,
    include_drawdown: bool = False,
) -> int:
    """Combine appetite, history and volatility into a clamped risk level.

    Args:
        preferences: Private preferences (``risk_appetite`` is the base).
        history: Private history snapshot.
        market: Public market state (``volatility_bps`` adds risk).
        include_drawdown: Also add ``max_drawdown_bps // 20`` (routing circuit).

    Returns:
        Risk level in ``[0, RISK_LEVEL_MAX]``.
    """
    total = (
        preferences.risk_appetite
        + history_adjustment(history)
        + market.volatility_bps // _VOLATILITY_DIVISOR
    )
    if include_drawdown:
        total += history.max_drawdown_bps // _DRAWDOWN_DIVISOR
    return max(0, min(RISK_LEVEL_MAX, total))


def classify_mode(risk_level: int) -> ExecutionMode:
    for threshold, mode in _MODE_THRESHOLDS:
        if risk_level > threshold:
            return mode
    return ExecutionMode.NORMAL


def classify_risk_class(risk_level: int) -> RiskClass:
    if risk_level <= _LOW_RISK_CEILING:
        return RiskClass.LOW
    if risk_level > _HIGH_RISK_FLOOR:
        return RiskClass.HIGH
    return RiskClass.BALANCED
