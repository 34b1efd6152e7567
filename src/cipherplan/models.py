"""Shared data models for confidential strategy derivation.

All quantities are integers in smallest units (sizes, prices) or basis points
(rates). Never use float for anything that is encoded, hashed or signed: the
receipt hash is taken over the exact byte encoding of these values.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class CircuitId(str, Enum):
    """Selectable computation schema and ruleset."""

    STRATEGY_PLAN = "strategy_plan"  # slice planning
    ROUTING_PLAN = "routing_plan"  # routing / privacy selection

    @property
    def tag(self) -> int:
        """One-byte wire tag identifying the circuit in encoded payloads."""
        return _CIRCUIT_TAGS[self]

    @classmethod
    def from_tag(cls, tag: int) -> "CircuitId":
        for circuit, value in _CIRCUIT_TAGS.items():
            if value == tag:
                return circuit
        raise ValueError(f"unknown circuit tag {tag}")


_CIRCUIT_TAGS: dict[CircuitId, int] = {
    CircuitId.STRATEGY_PLAN: 1,
    CircuitId.ROUTING_PLAN: 2,
}


class ExecutionMode(IntEnum):
    """Recommended execution privacy posture."""

    NORMAL = 0
    STEALTH = 1
    MAX_GHOST = 2


class MevRoute(IntEnum):
    """Order routing path for MEV protection."""

    STANDARD = 0
    BUNDLED = 1
    PRIVATE = 2


class PrivacyMode(IntEnum):
    """Privacy level applied to order flow."""

    NORMAL = 0
    STEALTH = 1
    MAX_GHOST = 2


class RiskClass(IntEnum):
    """Coarse risk bucket for the routing plan."""

    LOW = 0
    BALANCED = 1
    HIGH = 2


class ComputationStatus(IntEnum):
    """Lifecycle status of a computation as reported by the network."""

    PENDING = 0
    COMPLETED = 1
    FAILED = 2


@dataclass(frozen=True)
class UserPreferences:
    """Private execution preferences. Immutable once submitted."""

    desired_size: int  # smallest-unit notional, > 0
    slippage_tolerance_bps: int  # 0-10000
    risk_appetite: int  # 0-1000
    preferred_hold_time_sec: int  # >= 0, 0 = no preference
    privacy_priority: int = 0  # 0-1000, routing circuit only


@dataclass(frozen=True)
class UserHistory:
    """Private trading history snapshot."""

    recent_pnl: int  # signed, smallest units
    win_rate_bps: int  # 0-10000
    avg_hold_time_sec: int
    total_trades: int
    max_drawdown_bps: int = 0  # 0-10000, routing circuit only


@dataclass(frozen=True)
class MarketState:
    """Public market snapshot supplied fresh per request."""

    current_price: int  # fixed-point, > 0
    liquidity_depth: int
    volatility_bps: int  # unbounded upward
    recent_volume: int


@dataclass(frozen=True)
class ComputationInput:
    """Everything a circuit consumes for one computation."""

    circuit_id: CircuitId
    preferences: UserPreferences
    history: UserHistory
    market: MarketState


@dataclass(frozen=True)
class StrategyPlan:
    """Execution strategy produced by the slice-planning circuit.

    ``max_notional`` always equals the requested ``desired_size``: a plan never
    recommends committing more than the caller asked for.
    """

    recommended_mode: ExecutionMode
    num_slices: int
    slice_size_base: int
    timing_window_sec: int
    risk_level: int  # 0-1000
    max_notional: int

    @property
    def circuit_id(self) -> CircuitId:
        return CircuitId.STRATEGY_PLAN


@dataclass(frozen=True)
class RoutingPlan(StrategyPlan):
    """Strategy plan extended with routing and privacy selections."""

    mev_route: MevRoute
    privacy_mode: PrivacyMode
    risk_class: RiskClass

    @property
    def circuit_id(self) -> CircuitId:
        return CircuitId.ROUTING_PLAN


@dataclass(frozen=True)
class ComputationReceipt:
    """Signed record binding a computation to the hash of its result."""

    receipt_id: bytes  # 32-byte digest of the other fields
    computation_id: str
    result_hash: bytes  # SHA-256 of the canonical plan encoding
    signature: bytes  # Ed25519 over computation_id || result_hash
    timestamp: int  # seconds since epoch
    status: ComputationStatus


@dataclass(frozen=True)
class VerifiedResult:
    """A plan whose receipt passed every verification check."""

    computation_id: str
    plan: StrategyPlan
    receipt: ComputationReceipt
