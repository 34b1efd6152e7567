"""Strategy derivation engine: one deterministic ruleset per circuit.

``derive`` is the function the confidential-computation network evaluates
over the decrypted inputs. It must be pure: no clock, no randomness, no I/O.
The receipt's result_hash covers its output, so identical inputs have to
produce byte-identical plans.

Rulesets are registered in ``RULESETS`` keyed by CircuitId; adding a circuit
means adding a layout in ``cipherplan.encoding.schema`` and a ruleset here.
"""

from collections.abc import Callable

from cipherplan.encoding.validation import validate_input
from cipherplan.models import CircuitId, ComputationInput, RoutingPlan, StrategyPlan
from cipherplan.strategy.risk import classify_mode, classify_risk_class, compute_risk_level
from cipherplan.strategy.routing import (
    privacy_extra_slices,
    select_mev_route,
    select_privacy_mode,
)
from cipherplan.strategy.slicing import compute_num_slices, compute_slice_size
from cipherplan.strategy.timing import compute_timing_window

Ruleset = Callable[[ComputationInput], StrategyPlan]


def derive_strategy_plan(computation_input: ComputationInput) -> StrategyPlan:
    """Slice-planning ruleset."""
    prefs = computation_input.preferences
    hist = computation_input.history
    market = computation_input.market

    risk_level = compute_risk_level(prefs, hist, market)
    num_slices = compute_num_slices(prefs, market)

    return StrategyPlan(
        recommended_mode=classify_mode(risk_level),
        num_slices=num_slices,
        slice_size_base=compute_slice_size(prefs.desired_size, num_slices),
        timing_window_sec=compute_timing_window(prefs, hist, market),
        risk_level=risk_level,
        max_notional=prefs.desired_size,
    )


def derive_routing_plan(computation_input: ComputationInput) -> RoutingPlan:
    """Routing/privacy ruleset.

    Same slicing and timing rules as the slice planner, plus drawdown-aware
    risk, privacy-driven extra slices, and privacy/route selection.
    """
    prefs = computation_input.preferences
    hist = computation_input.history
    market = computation_input.market

    risk_level = compute_risk_level(prefs, hist, market, include_drawdown=True)
    num_slices = compute_num_slices(
        prefs, market, extra_slices=privacy_extra_slices(prefs.privacy_priority)
    )

    return RoutingPlan(
        recommended_mode=classify_mode(risk_level),
        num_slices=num_slices,
        slice_size_base=compute_slice_size(prefs.desired_size, num_slices),
        timing_window_sec=compute_timing_window(prefs, hist, market),
        risk_level=risk_level,
        max_notional=prefs.desired_size,
        mev_route=select_mev_route(prefs.privacy_priority, risk_level),
        privacy_mode=select_privacy_mode(prefs.privacy_priority, risk_level),
        risk_class=classify_risk_class(risk_level),
    )


RULESETS: dict[CircuitId, Ruleset] = {
    CircuitId.STRATEGY_PLAN: derive_strategy_plan,
    CircuitId.ROUTING_PLAN: derive_routing_plan,
}


def derive(computation_input: ComputationInput) -> StrategyPlan:
    """Compute the plan for ``computation_input`` with its circuit's ruleset.

    Raises:
        InvalidInputError: if the input is out of range. Callers validate
            before submission, so inside the network this never fires for
            honest clients.
    """
    validate_input(computation_input)
    return RULESETS[computation_input.circuit_id](computation_input)
