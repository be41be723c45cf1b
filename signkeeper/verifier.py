# verifier.py
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

from . import codec
from .errors import InvalidInput
from .signer import SIGNATURE_ALGORITHM


class Verifier:
    """Checks signatures against caller-supplied public keys. Any failure returns False."""

    def __init__(self, curve_name: str = "secp256k1"):
        codec.get_curve(curve_name)
        self._curve_name = curve_name

    @property
    def curve_name(self) -> str:
        return self._curve_name

    def verify(self, hash_hex: str, signature_hex: str, public_key_hex: str) -> bool:
        try:
            data = codec.decode_hex(hash_hex, "hash")
            signature = codec.decode_hex(signature_hex, "signature")
            public_key = codec.public_key_from_hex(public_key_hex, self._curve_name)
            public_key.verify(signature, data, SIGNATURE_ALGORITHM)
        except (InvalidInput, InvalidSignature, UnsupportedAlgorithm, ValueError, TypeError):
            return False
        return True
