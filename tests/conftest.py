"""Shared test fixtures for cipherplan."""

from collections.abc import Callable
from dataclasses import replace
from typing import Any

import pytest

from cipherplan.config import SessionSettings
from cipherplan.models import (
    CircuitId,
    ComputationInput,
    MarketState,
    UserHistory,
    UserPreferences,
)
from cipherplan.network.cipher import BoxCipher, generate_cipher_pair
from cipherplan.receipts.builder import ReceiptAuthority

InputFactory = Callable[..., ComputationInput]


@pytest.fixture
def session_settings() -> SessionSettings:
    """Fast polling so orchestrator tests finish in milliseconds."""
    return SessionSettings(
        poll_initial_interval=0.01,
        poll_multiplier=2.0,
        poll_max_interval=0.02,
        deadline_seconds=1.0,
        clock_skew_seconds=30,
    )


@pytest.fixture
def cipher_pair() -> tuple[BoxCipher, BoxCipher]:
    """(client_cipher, network_cipher) over fresh keys."""
    return generate_cipher_pair()


@pytest.fixture
def authority() -> ReceiptAuthority:
    return ReceiptAuthority.generate()


@pytest.fixture
def make_input() -> InputFactory:
    """Factory for the reference order, with per-group field overrides.

    Usage:
        make_input(CircuitId.ROUTING_PLAN, market={"volatility_bps": 900})
    """

    def _make(
        circuit_id: CircuitId = CircuitId.STRATEGY_PLAN,
        preferences: dict[str, Any] | None = None,
        history: dict[str, Any] | None = None,
        market: dict[str, Any] | None = None,
    ) -> ComputationInput:
        base_preferences = UserPreferences(
            desired_size=1_000_000_000,
            slippage_tolerance_bps=100,
            risk_appetite=150,
            preferred_hold_time_sec=3600,
        )
        base_history = UserHistory(
            recent_pnl=5_000_000,
            win_rate_bps=6500,
            avg_hold_time_sec=1800,
            total_trades=50,
        )
        base_market = MarketState(
            current_price=1_000_000,
            liquidity_depth=5_000_000_000,
            volatility_bps=300,
            recent_volume=10_000_000_000,
        )
        return ComputationInput(
            circuit_id=circuit_id,
            preferences=replace(base_preferences, **(preferences or {})),
            history=replace(base_history, **(history or {})),
            market=replace(base_market, **(market or {})),
        )

    return _make


@pytest.fixture
def scenario_input(make_input: InputFactory) -> ComputationInput:
    """The reference 1,000,000,000-unit order for the slice-planning circuit."""
    return make_input()
