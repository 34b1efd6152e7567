"""Tests for the circuit byte codec.

Covers input and plan round trips, fixed payload sizes, and every way a
payload can disagree with its layout (version, circuit tag, length, enum byte,
plan ranges).
"""

from dataclasses import replace

import pytest

from cipherplan.encoding.codec import (
    decode_input,
    decode_plan,
    encode_input,
    encode_plan,
    peek_header,
)
from cipherplan.encoding.schema import INPUT_LAYOUTS, PLAN_LAYOUTS, SCHEMA_VERSION
from cipherplan.encoding.validation import PLAN_RANGES
from cipherplan.exceptions import ErrorKind, SchemaMismatchError
from cipherplan.models import (
    CircuitId,
    ExecutionMode,
    MevRoute,
    PrivacyMode,
    RiskClass,
    RoutingPlan,
    StrategyPlan,
)
from cipherplan.strategy.risk import RISK_LEVEL_MAX
from cipherplan.strategy.slicing import MAX_SLICES


def _strategy_plan() -> StrategyPlan:
    return StrategyPlan(
        recommended_mode=ExecutionMode.NORMAL,
        num_slices=5,
        slice_size_base=200_000_000,
        timing_window_sec=90,
        risk_level=140,
        max_notional=1_000_000_000,
    )


def _routing_plan() -> RoutingPlan:
    return RoutingPlan(
        recommended_mode=ExecutionMode.STEALTH,
        num_slices=9,
        slice_size_base=111_111_111,
        timing_window_sec=60,
        risk_level=520,
        max_notional=1_000_000_000,
        mev_route=MevRoute.BUNDLED,
        privacy_mode=PrivacyMode.STEALTH,
        risk_class=RiskClass.BALANCED,
    )


class TestInputCodec:
    """Client-side encode, network-side decode."""

    @pytest.mark.parametrize("circuit_id", list(CircuitId))
    def test_round_trip(self, make_input, circuit_id: CircuitId) -> None:
        computation_input = make_input(
            circuit_id,
            preferences={"privacy_priority": 400} if circuit_id is CircuitId.ROUTING_PLAN else None,
            history={"recent_pnl": -2_500_000},
        )
        assert decode_input(encode_input(computation_input)) == computation_input

    def test_strategy_payload_size(self, scenario_input) -> None:
        encoded = encode_input(scenario_input)
        assert len(encoded) == INPUT_LAYOUTS[CircuitId.STRATEGY_PLAN].size == 64

    def test_routing_payload_carries_extra_fields(self, make_input) -> None:
        encoded = encode_input(make_input(CircuitId.ROUTING_PLAN))
        assert len(encoded) == INPUT_LAYOUTS[CircuitId.ROUTING_PLAN].size == 68

    def test_header_identifies_circuit(self, make_input) -> None:
        encoded = encode_input(make_input(CircuitId.ROUTING_PLAN))
        assert peek_header(encoded) == (SCHEMA_VERSION, CircuitId.ROUTING_PLAN)

    def test_encoding_is_deterministic(self, scenario_input) -> None:
        assert encode_input(scenario_input) == encode_input(scenario_input)

    def test_unknown_circuit_tag(self, scenario_input) -> None:
        encoded = bytearray(encode_input(scenario_input))
        encoded[1] = 99
        with pytest.raises(SchemaMismatchError):
            decode_input(bytes(encoded))

    def test_truncated_input(self, scenario_input) -> None:
        with pytest.raises(SchemaMismatchError):
            decode_input(encode_input(scenario_input)[:-1])

    def test_empty_payload(self) -> None:
        with pytest.raises(SchemaMismatchError, match="too short"):
            decode_input(b"")


class TestPlanCodec:
    """Network-side encode, client-side decode."""

    def test_strategy_round_trip(self) -> None:
        plan = _strategy_plan()
        decoded = decode_plan(CircuitId.STRATEGY_PLAN, encode_plan(plan))
        assert decoded == plan
        assert type(decoded) is StrategyPlan

    def test_routing_round_trip(self) -> None:
        plan = _routing_plan()
        decoded = decode_plan(CircuitId.ROUTING_PLAN, encode_plan(plan))
        assert decoded == plan
        assert isinstance(decoded.mev_route, MevRoute)

    def test_sizes(self) -> None:
        assert len(encode_plan(_strategy_plan())) == PLAN_LAYOUTS[CircuitId.STRATEGY_PLAN].size == 26
        assert len(encode_plan(_routing_plan())) == PLAN_LAYOUTS[CircuitId.ROUTING_PLAN].size == 29

    def test_encoding_is_canonical(self) -> None:
        """Equal plans encode to identical bytes (receipts hash this form)."""
        assert encode_plan(_strategy_plan()) == encode_plan(_strategy_plan())

    def test_version_mismatch(self) -> None:
        data = bytearray(encode_plan(_strategy_plan()))
        data[0] = SCHEMA_VERSION + 1
        with pytest.raises(SchemaMismatchError, match="schema version") as exc_info:
            decode_plan(CircuitId.STRATEGY_PLAN, bytes(data))
        assert exc_info.value.kind is ErrorKind.SCHEMA_MISMATCH

    def test_decoding_with_wrong_circuit(self) -> None:
        with pytest.raises(SchemaMismatchError, match="circuit tag"):
            decode_plan(CircuitId.ROUTING_PLAN, encode_plan(_strategy_plan()))

    def test_trailing_bytes_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError, match="expects 26"):
            decode_plan(CircuitId.STRATEGY_PLAN, encode_plan(_strategy_plan()) + b"\x00")

    def test_invalid_enum_byte(self) -> None:
        data = bytearray(encode_plan(_routing_plan()))
        data[-1] = 7  # risk_class
        with pytest.raises(SchemaMismatchError, match="risk_class"):
            decode_plan(CircuitId.ROUTING_PLAN, bytes(data))

    def test_field_outside_wire_width(self) -> None:
        plan = StrategyPlan(
            recommended_mode=ExecutionMode.NORMAL,
            num_slices=300,
            slice_size_base=1,
            timing_window_sec=1,
            risk_level=0,
            max_notional=300,
        )
        with pytest.raises(SchemaMismatchError):
            encode_plan(plan)


class TestDecodedPlanRanges:
    """A well-formed payload still has to describe a plan a ruleset could produce."""

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"num_slices": 0, "slice_size_base": 1}, "num_slices"),
            ({"num_slices": 33, "slice_size_base": 1}, "num_slices"),
            ({"slice_size_base": 0}, "slice_size_base"),
            ({"risk_level": 1_001}, "risk_level"),
        ],
    )
    def test_out_of_range_field(self, overrides, field) -> None:
        plan = replace(_strategy_plan(), **overrides)
        with pytest.raises(SchemaMismatchError, match=field):
            decode_plan(CircuitId.STRATEGY_PLAN, encode_plan(plan))

    def test_slices_exceed_max_notional(self) -> None:
        plan = replace(_routing_plan(), slice_size_base=111_111_112)
        with pytest.raises(SchemaMismatchError, match="max_notional"):
            decode_plan(CircuitId.ROUTING_PLAN, encode_plan(plan))

    def test_range_edges_accepted(self) -> None:
        plan = replace(_strategy_plan(), num_slices=32, slice_size_base=31_250_000, risk_level=1_000)
        assert decode_plan(CircuitId.STRATEGY_PLAN, encode_plan(plan)) == plan

    def test_slice_cap_matches_slicer(self) -> None:
        assert PLAN_RANGES["num_slices"][1] == MAX_SLICES
        assert PLAN_RANGES["risk_level"][1] == RISK_LEVEL_MAX
