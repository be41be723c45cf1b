# signer.py
import logging

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from . import codec
from .errors import SigningFailed
from .keystore import KeyStore

logger = logging.getLogger(__name__)

# Same message encoding on both sides: ECDSA with SHA-256.
SIGNATURE_ALGORITHM = ec.ECDSA(hashes.SHA256())


class Signer:
    """Signs caller-supplied hashes with the key held by a KeyStore."""

    def __init__(self, keystore: KeyStore):
        self._keystore = keystore

    def sign(self, hash_hex: str) -> str:
        """Sign the bytes decoded from ``hash_hex``; returns the DER signature as hex."""
        data = codec.decode_hex(hash_hex, "hash")
        private_key = self._keystore.get_private_key()
        try:
            signature = private_key.sign(data, SIGNATURE_ALGORITHM)
        except Exception as e:
            # Only the type is logged; messages may carry internal state.
            logger.error("Signing primitive failed: %s", type(e).__name__)
            raise SigningFailed() from None
        return codec.encode_hex(signature)
