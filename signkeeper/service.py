# service.py
from typing import Any, Dict, Optional

from .keystore import KeyStore
from .signer import Signer
from .verifier import Verifier

SELF_TEST_HASH = "deadbeef"


class SigningService:
    """The operations the HTTP layer is allowed to call. Built once at startup, stateless."""

    def __init__(self, keystore: KeyStore, verifier: Optional[Verifier] = None):
        if not keystore.initialized:
            raise RuntimeError("KeyStore must be initialized before serving requests.")
        self._keystore = keystore
        self._signer = Signer(keystore)
        self._verifier = verifier or Verifier(keystore.curve_name)

    def sign_hash(self, hash_hex: str) -> str:
        return self._signer.sign(hash_hex)

    def verify_signature(self, hash_hex: str, signature_hex: str, public_key_hex: str) -> bool:
        return self._verifier.verify(hash_hex, signature_hex, public_key_hex)

    def export_public_key(self) -> str:
        return self._keystore.get_public_key_hex()

    def self_test(self) -> Dict[str, Any]:
        """Sign a fixed hash and verify it against our own public key."""
        signature = self.sign_hash(SELF_TEST_HASH)
        public_key = self.export_public_key()
        valid = self.verify_signature(SELF_TEST_HASH, signature, public_key)
        return {
            "testHash": SELF_TEST_HASH,
            "signature": signature,
            "publicKey": public_key,
            "valid": valid,
            "message": "Signature self-test passed" if valid else "Signature self-test failed",
        }
