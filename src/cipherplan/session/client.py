"""High-level client: one fresh orchestrator per request.

Wires the shared, read-only collaborators (network, cipher, verifier, receipt
store) into independent SessionOrchestrator instances so several requests can
run concurrently without sharing any session state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cipherplan.config import SessionSettings
from cipherplan.exceptions import CipherPlanError
from cipherplan.logging import get_logger
from cipherplan.models import ComputationInput, VerifiedResult
from cipherplan.session.orchestrator import SessionOrchestrator

if TYPE_CHECKING:
    from cipherplan.network.cipher import PayloadCipher
    from cipherplan.network.client import ComputationNetwork
    from cipherplan.receipts.store import ReceiptStore
    from cipherplan.receipts.verifier import ReceiptVerifier

logger = get_logger(__name__)


class StrategyClient:
    """Requests verified strategy plans from the computation network.

    Args:
        network: Confidential-computation network client.
        cipher: Client-side payload cipher.
        verifier: Receipt verifier bound to the network public key.
        settings: Session polling policy applied to every request.
        receipt_store: Optional shared audit store.
    """

    def __init__(
        self,
        network: ComputationNetwork,
        cipher: PayloadCipher,
        verifier: ReceiptVerifier,
        settings: SessionSettings,
        receipt_store: ReceiptStore | None = None,
    ) -> None:
        self._network = network
        self._cipher = cipher
        self._verifier = verifier
        self._settings = settings
        self._receipt_store = receipt_store

    def new_session(self) -> SessionOrchestrator:
        return SessionOrchestrator(
            network=self._network,
            cipher=self._cipher,
            verifier=self._verifier,
            settings=self._settings,
            receipt_store=self._receipt_store,
        )

    async def request(self, computation_input: ComputationInput) -> VerifiedResult:
        """Run one session to completion."""
        return await self.new_session().run(computation_input)

    async def request_many(
        self, inputs: Sequence[ComputationInput]
    ) -> list[VerifiedResult | CipherPlanError]:
        """Run independent sessions concurrently.

        Returns:
            One entry per input, in order: the verified result, or the
            CipherPlanError that ended that session. Other exceptions propagate.
        """
        results = await asyncio.gather(
            *(self.request(item) for item in inputs), return_exceptions=True
        )

        outcomes: list[VerifiedResult | CipherPlanError] = []
        for result in results:
            if isinstance(result, CipherPlanError | VerifiedResult):
                outcomes.append(result)
            else:
                raise result

        logger.info(
            "batch_complete",
            requested=len(inputs),
            verified=sum(isinstance(r, VerifiedResult) for r in outcomes),
        )
        return outcomes
