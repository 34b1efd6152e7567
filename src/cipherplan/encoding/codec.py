"""Byte codec between domain records and circuit payloads.

``encode_input``/``decode_plan`` are the client side; ``decode_input``/
``encode_plan`` are what the computation network does with the same layouts.
``encode_plan`` is also the canonical form hashed into receipts, so it must
stay byte-for-byte deterministic.
"""

import struct
from enum import IntEnum

from cipherplan.encoding.schema import (
    HEADER,
    INPUT_LAYOUTS,
    PLAN_LAYOUTS,
    Layout,
)
from cipherplan.encoding.validation import resolve, validate_input, validate_plan
from cipherplan.exceptions import SchemaMismatchError
from cipherplan.models import (
    CircuitId,
    ComputationInput,
    ExecutionMode,
    MarketState,
    MevRoute,
    PrivacyMode,
    RiskClass,
    RoutingPlan,
    StrategyPlan,
    UserHistory,
    UserPreferences,
)

_PLAN_ENUMS: dict[str, type[IntEnum]] = {
    "recommended_mode": ExecutionMode,
    "mev_route": MevRoute,
    "privacy_mode": PrivacyMode,
    "risk_class": RiskClass,
}

_PLAN_TYPES: dict[CircuitId, type[StrategyPlan]] = {
    CircuitId.STRATEGY_PLAN: StrategyPlan,
    CircuitId.ROUTING_PLAN: RoutingPlan,
}


def _pack(layout: Layout, values: list[int]) -> bytes:
    return HEADER.pack(layout.version, layout.circuit_id.tag) + layout.body.pack(
        *values
    )


def _unpack(layout: Layout, data: bytes) -> tuple[int, ...]:
    """Check header and length against ``layout`` and return the field values."""
    if len(data) < HEADER.size:
        raise SchemaMismatchError(f"payload too short for header ({len(data)} bytes)")

    version, tag = HEADER.unpack_from(data)
    if version != layout.version:
        raise SchemaMismatchError(
            f"schema version {version} does not match expected {layout.version}"
        )
    if tag != layout.circuit_id.tag:
        raise SchemaMismatchError(
            f"circuit tag {tag} does not match {layout.circuit_id.value}"
        )
    if len(data) != layout.size:
        raise SchemaMismatchError(
            f"payload is {len(data)} bytes, {layout.circuit_id.value} "
            f"v{layout.version} expects {layout.size}"
        )
    return layout.body.unpack_from(data, HEADER.size)


def peek_header(data: bytes) -> tuple[int, CircuitId]:
    """Return ``(version, circuit_id)`` from a payload header."""
    if len(data) < HEADER.size:
        raise SchemaMismatchError(f"payload too short for header ({len(data)} bytes)")
    version, tag = HEADER.unpack_from(data)
    try:
        return version, CircuitId.from_tag(tag)
    except ValueError as exc:
        raise SchemaMismatchError(str(exc)) from exc


def encode_input(computation_input: ComputationInput) -> bytes:
    """Validate and encode an input for its circuit.

    Raises:
        InvalidInputError: if any field is out of range.
    """
    validate_input(computation_input)
    layout = INPUT_LAYOUTS[computation_input.circuit_id]
    return _pack(layout, [resolve(computation_input, path) for path in layout.names])


def decode_input(data: bytes) -> ComputationInput:
    """Decode an input payload, selecting the layout from its circuit tag."""
    _, circuit_id = peek_header(data)
    layout = INPUT_LAYOUTS[circuit_id]
    values = dict(zip(layout.names, _unpack(layout, data)))

    groups: dict[str, dict[str, int]] = {"preferences": {}, "history": {}, "market": {}}
    for path, value in values.items():
        group, name = path.split(".")
        groups[group][name] = value

    return ComputationInput(
        circuit_id=circuit_id,
        preferences=UserPreferences(**groups["preferences"]),
        history=UserHistory(**groups["history"]),
        market=MarketState(**groups["market"]),
    )


def encode_plan(plan: StrategyPlan) -> bytes:
    """Canonical byte encoding of a plan (the form covered by result_hash)."""
    layout = PLAN_LAYOUTS[plan.circuit_id]
    try:
        return _pack(layout, [int(getattr(plan, name)) for name in layout.names])
    except struct.error as exc:
        raise SchemaMismatchError(f"plan field out of wire range: {exc}") from exc


def decode_plan(circuit_id: CircuitId, data: bytes) -> StrategyPlan:
    """Decode a plan payload with the decoder for ``circuit_id``.

    Raises:
        SchemaMismatchError: if version, circuit tag, length, an enum value or
            a plan range (slice count, risk level, committed notional)
            does not match the layout.
    """
    layout = PLAN_LAYOUTS[circuit_id]
    fields: dict[str, int] = dict(zip(layout.names, _unpack(layout, data)))

    for name, enum_type in _PLAN_ENUMS.items():
        if name not in fields:
            continue
        try:
            fields[name] = enum_type(fields[name])
        except ValueError as exc:
            raise SchemaMismatchError(
                f"{name}={fields[name]} is not a valid {enum_type.__name__}"
            ) from exc

    plan = _PLAN_TYPES[circuit_id](**fields)
    validate_plan(plan)
    return plan
