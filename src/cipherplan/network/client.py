"""Abstract confidential-computation network interface.

Defines the contract for every network implementation. Session code depends
only on this interface, keeping transport and ledger details out of the
orchestrator. The network's internal secret-sharing protocol is out of scope:
it is treated as a trusted black box exposing these operations.
"""

from abc import ABC, abstractmethod

from nacl.signing import VerifyKey

from cipherplan.models import CircuitId, ComputationReceipt, ComputationStatus


class ComputationNetwork(ABC):
    """Abstract base class for confidential-computation network clients."""

    async def connect(self) -> None:
        """Initialize the connection. No-op by default."""

    async def close(self) -> None:
        """Release transport resources. No-op by default."""

    @abstractmethod
    async def submit(self, circuit_id: CircuitId, encrypted_input: bytes) -> str:
        """Queue a computation and return its network-assigned id.

        Raises:
            SubmissionRejectedError: malformed ciphertext or unknown circuit.
            NetworkUnavailableError: transient transport failure.
        """
        ...

    @abstractmethod
    async def poll_status(self, computation_id: str) -> ComputationStatus:
        """Return the current status of a computation.

        Raises:
            NetworkUnavailableError: transient transport failure.
        """
        ...

    @abstractmethod
    async def fetch_result(self, computation_id: str) -> tuple[bytes, ComputationReceipt]:
        """Return ``(encrypted_output, receipt)`` for a COMPLETED computation.

        Raises:
            NotReadyError: if the computation has not completed.
        """
        ...

    @abstractmethod
    def public_key(self) -> VerifyKey:
        """Stable Ed25519 key the network signs receipts with."""
        ...
