"""Confidential-computation network boundary -- client ABC, payload cipher, simulator."""

from cipherplan.network.cipher import BoxCipher, PayloadCipher, generate_cipher_pair
from cipherplan.network.client import ComputationNetwork
from cipherplan.network.keys import client_cipher_from_settings, verify_key_from_settings
from cipherplan.network.simulated import SimulatedNetwork

__all__ = [
    "BoxCipher",
    "ComputationNetwork",
    "PayloadCipher",
    "SimulatedNetwork",
    "client_cipher_from_settings",
    "generate_cipher_pair",
    "verify_key_from_settings",
]
