"""Strategy derivation engine.

Provides the per-circuit rulesets and the sub-rules they compose: risk
scoring, order slicing, timing windows, and privacy/route selection.
"""

from cipherplan.strategy.engine import RULESETS, derive, derive_routing_plan, derive_strategy_plan
from cipherplan.strategy.risk import classify_mode, classify_risk_class, compute_risk_level
from cipherplan.strategy.routing import select_mev_route, select_privacy_mode
from cipherplan.strategy.slicing import MAX_SLICES, compute_num_slices, compute_slice_size
from cipherplan.strategy.timing import compute_timing_window

__all__ = [
    "MAX_SLICES",
    "RULESETS",
    "classify_mode",
    "classify_risk_class",
    "compute_num_slices",
    "compute_risk_level",
    "compute_slice_size",
    "compute_timing_window",
    "derive",
    "derive_routing_plan",
    "derive_strategy_plan",
    "select_mev_route",
    "select_privacy_mode",
]
