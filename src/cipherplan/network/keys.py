"""Key material loading from NetworkSettings.

All keys are hex strings in settings. Missing keys fail loudly at startup
rather than at the first verification.
"""

from nacl.encoding import HexEncoder
from nacl.signing import VerifyKey

from cipherplan.config import NetworkSettings
from cipherplan.network.cipher import BoxCipher


def verify_key_from_settings(settings: NetworkSettings) -> VerifyKey:
    """Network receipt-signing key from ``NETWORK_SIGNING_PUBLIC_KEY``."""
    if not settings.signing_public_key:
        raise ValueError("NETWORK_SIGNING_PUBLIC_KEY is not configured")
    return VerifyKey(settings.signing_public_key.encode(), encoder=HexEncoder)


def client_cipher_from_settings(settings: NetworkSettings) -> BoxCipher:
    """Client cipher from ``NETWORK_CLIENT_SECRET_KEY`` and ``NETWORK_ENCRYPTION_PUBLIC_KEY``."""
    secret = settings.client_secret_key.get_secret_value()
    if not secret or not settings.encryption_public_key:
        raise ValueError(
            "NETWORK_CLIENT_SECRET_KEY and NETWORK_ENCRYPTION_PUBLIC_KEY must be configured"
        )
    return BoxCipher.from_hex(secret, settings.encryption_public_key)
