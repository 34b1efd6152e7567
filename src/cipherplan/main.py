"""Entry point for the cipherplan demonstration.

Wires the components together and requests one plan per circuit for a sample
order against the in-process SimulatedNetwork.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. Payload ciphers (client side and simulated network side)
4. ReceiptAuthority + SimulatedNetwork
5. ReceiptVerifier (bound to the network's signing key)
6. ReceiptStore (in-memory or SQLite, per RECEIPTS_BACKEND)
7. StrategyClient (one SessionOrchestrator per request)
"""

import asyncio
from typing import Any

from cipherplan.config import AppSettings
from cipherplan.exceptions import CipherPlanError
from cipherplan.logging import get_logger, setup_logging
from cipherplan.models import (
    CircuitId,
    ComputationInput,
    MarketState,
    RoutingPlan,
    UserHistory,
    UserPreferences,
    VerifiedResult,
)
from cipherplan.network.cipher import generate_cipher_pair
from cipherplan.network.simulated import SimulatedNetwork
from cipherplan.receipts.builder import ReceiptAuthority
from cipherplan.receipts.database import ReceiptDatabase
from cipherplan.receipts.store import (
    InMemoryReceiptStore,
    ReceiptStore,
    SqliteReceiptStore,
)
from cipherplan.receipts.verifier import ReceiptVerifier
from cipherplan.session.client import StrategyClient


def sample_input(circuit_id: CircuitId) -> ComputationInput:
    """A 1,000,000,000-unit order from a moderately successful trader."""
    return ComputationInput(
        circuit_id=circuit_id,
        preferences=UserPreferences(
            desired_size=1_000_000_000,
            slippage_tolerance_bps=100,
            risk_appetite=150,
            preferred_hold_time_sec=3600,
            privacy_priority=500,
        ),
        history=UserHistory(
            recent_pnl=5_000_000,
            win_rate_bps=6500,
            avg_hold_time_sec=1800,
            total_trades=50,
            max_drawdown_bps=1200,
        ),
        market=MarketState(
            current_price=1_000_000,
            liquidity_depth=5_000_000_000,
            volatility_bps=300,
            recent_volume=10_000_000_000,
        ),
    )


async def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the client-side stack against a freshly keyed simulated network.

    The simulated network generates its own keys, so NETWORK_* settings are
    not used here; a deployment against a real network loads them through
    ``cipherplan.network.keys`` instead.

    Note: Does NOT connect the receipt database -- that happens in run().

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("cipherplan.main")

    # 3. Ciphers
    client_cipher, network_cipher = generate_cipher_pair()

    # 4. Network
    authority = ReceiptAuthority.generate()
    network = SimulatedNetwork(authority, network_cipher, polls_until_complete=2)

    # 5. Verifier
    verifier = ReceiptVerifier(
        network.public_key(), skew_bound=settings.session.clock_skew_seconds
    )

    # 6. Receipt store
    database: ReceiptDatabase | None = None
    if settings.receipts.backend == "sqlite":
        database = ReceiptDatabase(settings.receipts.db_path)
        store: ReceiptStore = SqliteReceiptStore(database)
    else:
        store = InMemoryReceiptStore()

    # 7. Client
    client = StrategyClient(
        network=network,
        cipher=client_cipher,
        verifier=verifier,
        settings=settings.session,
        receipt_store=store,
    )

    logger.info(
        "components_built",
        network="simulated",
        receipt_backend=settings.receipts.backend,
        deadline_seconds=settings.session.deadline_seconds,
    )

    return {
        "network": network,
        "verifier": verifier,
        "database": database,
        "receipt_store": store,
        "client": client,
    }


def _log_result(result: VerifiedResult | CipherPlanError) -> None:
    logger = get_logger("cipherplan.main")
    if isinstance(result, CipherPlanError):
        logger.error("plan_request_failed", error_kind=result.kind.value, error=str(result))
        return

    plan = result.plan
    extra: dict[str, Any] = {}
    if isinstance(plan, RoutingPlan):
        extra = {
            "mev_route": plan.mev_route.name,
            "privacy_mode": plan.privacy_mode.name,
            "risk_class": plan.risk_class.name,
        }
    logger.info(
        "plan_verified",
        circuit_id=plan.circuit_id.value,
        computation_id=result.computation_id,
        recommended_mode=plan.recommended_mode.name,
        num_slices=plan.num_slices,
        slice_size_base=plan.slice_size_base,
        timing_window_sec=plan.timing_window_sec,
        risk_level=plan.risk_level,
        max_notional=plan.max_notional,
        receipt_id=result.receipt.receipt_id.hex(),
        **extra,
    )


async def run() -> None:
    """Request a plan from every circuit and log the verified results."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("cipherplan.main")

    # 3-7. Build all components
    components = await _build_components(settings)
    database: ReceiptDatabase | None = components["database"]

    if database is not None:
        await database.connect()
    try:
        results = await components["client"].request_many(
            [sample_input(circuit_id) for circuit_id in CircuitId]
        )
        for result in results:
            _log_result(result)

        receipts = await components["receipt_store"].list_receipts()
        logger.info("cipherplan_demo_complete", receipts_recorded=len(receipts))
    finally:
        if database is not None:
            await database.close()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
