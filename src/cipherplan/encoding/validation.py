"""Range validation for computation inputs and decoded plans.

Validation runs before encoding and before any network call. The first
offending field is reported by its dotted path so callers can fix it.
"""

from cipherplan.encoding.schema import INPUT_LAYOUTS, WIRE_BOUNDS
from cipherplan.exceptions import InvalidInputError, SchemaMismatchError
from cipherplan.models import CircuitId, ComputationInput, StrategyPlan

#: Declared domain ranges (inclusive). Fields not listed are bounded only by
#: their wire width.
DOMAIN_RANGES: dict[str, tuple[int, int]] = {
    "preferences.desired_size": (1, 2**64 - 1),
    "preferences.slippage_tolerance_bps": (0, 10_000),
    "preferences.risk_appetite": (0, 1_000),
    "preferences.privacy_priority": (0, 1_000),
    "history.win_rate_bps": (0, 10_000),
    "history.max_drawdown_bps": (0, 10_000),
    "market.current_price": (1, 2**64 - 1),
}


def resolve(obj: object, path: str) -> object:
    """Follow a dotted attribute path (``"market.current_price"``)."""
    for part in path.split("."):
        obj = getattr(obj, part)
    return obj


def validate_input(computation_input: ComputationInput) -> None:
    """Reject any field that is not an integer within its declared range.

    Raises:
        InvalidInputError: naming the first offending field.
    """
    if not isinstance(computation_input.circuit_id, CircuitId):
        raise InvalidInputError(
            "circuit_id", computation_input.circuit_id, "unknown circuit"
        )

    layout = INPUT_LAYOUTS[computation_input.circuit_id]
    for path, code in layout.fields:
        value = resolve(computation_input, path)
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(path, value, "must be an integer")

        low, high = DOMAIN_RANGES.get(path, WIRE_BOUNDS[code])
        wire_low, wire_high = WIRE_BOUNDS[code]
        low, high = max(low, wire_low), min(high, wire_high)
        if value < low or value > high:
            raise InvalidInputError(path, value, f"must be within [{low}, {high}]")


#: Ranges a decoded plan must satisfy. ``num_slices`` is capped at the
#: slicer's MAX_SLICES and ``risk_level`` at the risk scale.
PLAN_RANGES: dict[str, tuple[int, int]] = {
    "num_slices": (1, 32),
    "slice_size_base": (1, 2**64 - 1),
    "risk_level": (0, 1_000),
}


def validate_plan(plan: StrategyPlan) -> None:
    """Reject a decoded plan that no ruleset could have produced.

    Raises:
        SchemaMismatchError: naming the first out-of-range field.
    """
    for name, (low, high) in PLAN_RANGES.items():
        value = getattr(plan, name)
        if value < low or value > high:
            raise SchemaMismatchError(f"plan {name}={value} is outside [{low}, {high}]")

    if plan.num_slices * plan.slice_size_base > plan.max_notional:
        raise SchemaMismatchError(
            f"plan commits {plan.num_slices} x {plan.slice_size_base}, "
            f"above max_notional {plan.max_notional}"
        )
