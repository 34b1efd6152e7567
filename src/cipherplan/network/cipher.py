"""Payload encryption between the client and the computation network.

``BoxCipher`` uses PyNaCl's ``Box``: an X25519 shared key between our secret
key and the peer's public key, with XSalsa20-Poly1305 authenticated
encryption. Ciphertexts carry their random 24-byte nonce as a prefix.
"""

from abc import ABC, abstractmethod

from nacl.encoding import HexEncoder
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

from cipherplan.exceptions import ResultTamperedError


class PayloadCipher(ABC):
    """Encrypts inputs for, and decrypts outputs from, the network."""

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> bytes:
        ...

    @abstractmethod
    def decrypt(self, ciphertext: bytes) -> bytes:
        """Raises ResultTamperedError if the ciphertext fails authentication."""
        ...


class BoxCipher(PayloadCipher):
    """Authenticated public-key encryption with a single peer.

    Args:
        private_key: Our X25519 secret key.
        peer_public_key: The other side's X25519 public key.
    """

    def __init__(self, private_key: PrivateKey, peer_public_key: PublicKey) -> None:
        self._public_key = private_key.public_key
        self._box = Box(private_key, peer_public_key)

    @classmethod
    def from_hex(cls, private_key_hex: str, peer_public_key_hex: str) -> "BoxCipher":
        """Build a cipher from hex-encoded keys (as stored in NetworkSettings)."""
        return cls(
            PrivateKey(private_key_hex.encode(), encoder=HexEncoder),
            PublicKey(peer_public_key_hex.encode(), encoder=HexEncoder),
        )

    @property
    def public_key(self) -> PublicKey:
        """Our public key, which the peer needs to open our payloads."""
        return self._public_key

    def encrypt(self, plaintext: bytes) -> bytes:
        return bytes(self._box.encrypt(plaintext))

    def decrypt(self, ciphertext: bytes) -> bytes:
        try:
            return self._box.decrypt(ciphertext)
        except CryptoError as exc:
            raise ResultTamperedError("ciphertext failed authentication") from exc


def generate_cipher_pair() -> tuple[BoxCipher, BoxCipher]:
    """Return ``(client_cipher, network_cipher)`` over fresh key pairs."""
    client_key = PrivateKey.generate()
    network_key = PrivateKey.generate()
    return (
        BoxCipher(client_key, network_key.public_key),
        BoxCipher(network_key, client_key.public_key),
    )
