"""Tests for SimulatedNetwork -- the in-process computation network."""

import pytest

from cipherplan.encoding.codec import decode_plan, encode_input
from cipherplan.exceptions import NetworkUnavailableError, NotReadyError, SubmissionRejectedError
from cipherplan.models import CircuitId, ComputationStatus
from cipherplan.network.simulated import SimulatedNetwork
from cipherplan.receipts.verifier import verify_receipt
from cipherplan.strategy.engine import derive


@pytest.fixture
def network_cipher(cipher_pair):
    return cipher_pair[1]


@pytest.fixture
def client_cipher(cipher_pair):
    return cipher_pair[0]


class TestSubmit:

    @pytest.mark.asyncio
    async def test_full_cycle(self, authority, client_cipher, network_cipher, scenario_input) -> None:
        network = SimulatedNetwork(authority, network_cipher)

        computation_id = await network.submit(
            CircuitId.STRATEGY_PLAN, client_cipher.encrypt(encode_input(scenario_input))
        )
        assert computation_id.startswith("sim_")
        assert network.receipt_for(computation_id) is None

        assert await network.poll_status(computation_id) is ComputationStatus.COMPLETED
        ciphertext, receipt = await network.fetch_result(computation_id)
        plaintext = client_cipher.decrypt(ciphertext)

        assert decode_plan(CircuitId.STRATEGY_PLAN, plaintext) == derive(scenario_input)
        assert network.receipt_for(computation_id) == receipt
        verify_receipt(
            receipt,
            plaintext,
            computation_id,
            network.public_key(),
            submitted_at=receipt.timestamp,
            verified_at=receipt.timestamp,
        )

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, authority, client_cipher, network_cipher, scenario_input) -> None:
        network = SimulatedNetwork(authority, network_cipher)
        payload = encode_input(scenario_input)
        first = await network.submit(CircuitId.STRATEGY_PLAN, client_cipher.encrypt(payload))
        second = await network.submit(CircuitId.STRATEGY_PLAN, client_cipher.encrypt(payload))
        assert first != second

    @pytest.mark.asyncio
    async def test_undecryptable_payload(self, authority, network_cipher) -> None:
        network = SimulatedNetwork(authority, network_cipher)
        with pytest.raises(SubmissionRejectedError, match="malformed"):
            await network.submit(CircuitId.STRATEGY_PLAN, b"\x00" * 64)

    @pytest.mark.asyncio
    async def test_circuit_mismatch(self, authority, client_cipher, network_cipher, scenario_input) -> None:
        network = SimulatedNetwork(authority, network_cipher)
        payload = client_cipher.encrypt(encode_input(scenario_input))
        with pytest.raises(SubmissionRejectedError, match="submitted as routing_plan"):
            await network.submit(CircuitId.ROUTING_PLAN, payload)


class TestPolling:

    @pytest.mark.asyncio
    async def test_pending_polls_before_completion(
        self, authority, client_cipher, network_cipher, scenario_input
    ) -> None:
        network = SimulatedNetwork(authority, network_cipher, polls_until_complete=2)
        computation_id = await network.submit(
            CircuitId.STRATEGY_PLAN, client_cipher.encrypt(encode_input(scenario_input))
        )

        statuses = [await network.poll_status(computation_id) for _ in range(4)]
        assert statuses == [
            ComputationStatus.PENDING,
            ComputationStatus.PENDING,
            ComputationStatus.COMPLETED,
            ComputationStatus.COMPLETED,
        ]

    @pytest.mark.asyncio
    async def test_fetch_before_completion(
        self, authority, client_cipher, network_cipher, scenario_input
    ) -> None:
        network = SimulatedNetwork(authority, network_cipher, polls_until_complete=5)
        computation_id = await network.submit(
            CircuitId.STRATEGY_PLAN, client_cipher.encrypt(encode_input(scenario_input))
        )
        with pytest.raises(NotReadyError):
            await network.fetch_result(computation_id)

    @pytest.mark.asyncio
    async def test_scripted_transient_error(
        self, authority, client_cipher, network_cipher, scenario_input
    ) -> None:
        network = SimulatedNetwork(
            authority,
            network_cipher,
            poll_script=[NetworkUnavailableError("connection reset"), ComputationStatus.COMPLETED],
        )
        computation_id = await network.submit(
            CircuitId.STRATEGY_PLAN, client_cipher.encrypt(encode_input(scenario_input))
        )

        with pytest.raises(NetworkUnavailableError):
            await network.poll_status(computation_id)
        assert await network.poll_status(computation_id) is ComputationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_computation(
        self, authority, client_cipher, network_cipher, scenario_input
    ) -> None:
        network = SimulatedNetwork(authority, network_cipher, fail_computations=True)
        computation_id = await network.submit(
            CircuitId.STRATEGY_PLAN, client_cipher.encrypt(encode_input(scenario_input))
        )

        assert await network.poll_status(computation_id) is ComputationStatus.FAILED
        assert network.receipt_for(computation_id).status is ComputationStatus.FAILED
        with pytest.raises(NotReadyError):
            await network.fetch_result(computation_id)

    @pytest.mark.asyncio
    async def test_unknown_computation(self, authority, network_cipher) -> None:
        network = SimulatedNetwork(authority, network_cipher)
        with pytest.raises(NotReadyError, match="unknown computation"):
            await network.poll_status("sim_missing")
