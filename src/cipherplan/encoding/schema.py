"""Fixed-width byte layouts for every circuit's input and output.

Each payload is ``[version:u8][circuit_tag:u8]`` followed by the layout's
fields in declaration order, little-endian. Field order is part of the wire
contract: append new fields under a new ``SCHEMA_VERSION``, never reorder.
"""

import struct
from dataclasses import dataclass

from cipherplan.models import CircuitId

SCHEMA_VERSION = 1

HEADER = struct.Struct("<BB")

#: Inclusive integer bounds for each struct format code.
WIRE_BOUNDS: dict[str, tuple[int, int]] = {
    "B": (0, 2**8 - 1),
    "H": (0, 2**16 - 1),
    "I": (0, 2**32 - 1),
    "Q": (0, 2**64 - 1),
    "q": (-(2**63), 2**63 - 1),
}


@dataclass(frozen=True)
class Layout:
    """Ordered field list for one payload kind of one circuit.

    ``fields`` holds ``(path, code)`` pairs where ``path`` is a dotted attribute
    path (``"preferences.desired_size"`` for inputs, a flat name for plans) and
    ``code`` a single ``struct`` format character.
    """

    circuit_id: CircuitId
    fields: tuple[tuple[str, str], ...]
    version: int = SCHEMA_VERSION

    @property
    def body(self) -> struct.Struct:
        return struct.Struct("<" + "".join(code for _, code in self.fields))

    @property
    def size(self) -> int:
        return HEADER.size + self.body.size

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(path for path, _ in self.fields)


_BASE_INPUT_FIELDS: tuple[tuple[str, str], ...] = (
    ("preferences.desired_size", "Q"),
    ("preferences.slippage_tolerance_bps", "H"),
    ("preferences.risk_appetite", "H"),
    ("preferences.preferred_hold_time_sec", "I"),
    ("history.recent_pnl", "q"),
    ("history.win_rate_bps", "H"),
    ("history.avg_hold_time_sec", "I"),
    ("history.total_trades", "I"),
    ("market.current_price", "Q"),
    ("market.liquidity_depth", "Q"),
    ("market.volatility_bps", "I"),
    ("market.recent_volume", "Q"),
)

_BASE_PLAN_FIELDS: tuple[tuple[str, str], ...] = (
    ("recommended_mode", "B"),
    ("num_slices", "B"),
    ("slice_size_base", "Q"),
    ("timing_window_sec", "I"),
    ("risk_level", "H"),
    ("max_notional", "Q"),
)

INPUT_LAYOUTS: dict[CircuitId, Layout] = {
    CircuitId.STRATEGY_PLAN: Layout(CircuitId.STRATEGY_PLAN, _BASE_INPUT_FIELDS),
    CircuitId.ROUTING_PLAN: Layout(
        CircuitId.ROUTING_PLAN,
        _BASE_INPUT_FIELDS
        + (
            ("preferences.privacy_priority", "H"),
            ("history.max_drawdown_bps", "H"),
        ),
    ),
}

PLAN_LAYOUTS: dict[CircuitId, Layout] = {
    CircuitId.STRATEGY_PLAN: Layout(CircuitId.STRATEGY_PLAN, _BASE_PLAN_FIELDS),
    CircuitId.ROUTING_PLAN: Layout(
        CircuitId.ROUTING_PLAN,
        _BASE_PLAN_FIELDS
        + (
            ("mev_route", "B"),
            ("privacy_mode", "B"),
            ("risk_class", "B"),
        ),
    ),
}
