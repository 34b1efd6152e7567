"""Order slicing: how many slices, and how large each one is.

Slice count grows with order size, with thinner liquidity relative to the
order, and with a tight slippage tolerance. It is capped by ``MAX_SLICES`` and
by ``desired_size`` itself so every slice holds at least one unit.
"""

from cipherplan.models import MarketState, UserPreferences

MAX_SLICES = 32

_DEFAULT_SIZE_SLICES = 3

#: (exclusive lower bound on desired_size, base slices), checked in order.
_SIZE_TIERS: tuple[tuple[int, int], ...] = (
    (10_000_000_000, 8),
    (1_000_000_000, 5),
)

#: (liquidity as a multiple of desired_size, extra slices), checked in order.
_LIQUIDITY_TIERS: tuple[tuple[int, int], ...] = (
    (20, 0),
    (5, 2),
    (1, 4),
)
_THIN_LIQUIDITY_SLICES = 8

_TIGHT_SLIPPAGE_BPS = 50
_TIGHT_SLIPPAGE_SLICES = 2


def size_tier_slices(desired_size: int) -> int:
    for threshold, slices in _SIZE_TIERS:
        if desired_size > threshold:
            return slices
    return _DEFAULT_SIZE_SLICES


def liquidity_extra_slices(liquidity_depth: int, desired_size: int) -> int:
    """Extra slices for thin books. Non-increasing in ``liquidity_depth``."""
    for multiple, extra in _LIQUIDITY_TIERS:
        if liquidity_depth >= desired_size * multiple:
            return extra
    return _THIN_LIQUIDITY_SLICES


def compute_num_slices(
    preferences: UserPreferences,
    market: MarketState,
    extra_slices: int = 0,
) -> int:
    """Total slice count in ``[1, min(MAX_SLICES, desired_size)]``.

    Args:
        preferences: Supplies ``desired_size`` and ``slippage_tolerance_bps``.
        market: Supplies ``liquidity_depth``.
        extra_slices: Circuit-specific additions (e.g. privacy splitting).
    """
    slices = size_tier_slices(preferences.desired_size)
    slices += liquidity_extra_slices(market.liquidity_depth, preferences.desired_size)
    if preferences.slippage_tolerance_bps < _TIGHT_SLIPPAGE_BPS:
        slices += _TIGHT_SLIPPAGE_SLICES
    slices += extra_slices
    return max(1, min(slices, MAX_SLICES, preferences.desired_size))


def compute_slice_size(desired_size: int, num_slices: int) -> int:
    """Base slice size, rounded down.

    ``num_slices * result <= desired_size`` and the remainder is below
    ``num_slices``.
    """
    return desired_size // num_slices
