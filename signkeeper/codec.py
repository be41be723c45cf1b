# codec.py
# Hex on the wire, SPKI/DER public keys, PEM blocks in the persisted JSON record
import json
import re
from typing import Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import CorruptKeyStore, InvalidInput
from .security import constant_time_compare

# re.fullmatch so a trailing newline cannot slip past "$"
HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")

_CURVES = {
    "secp256k1": ec.SECP256K1,
    "secp256r1": ec.SECP256R1,
    "prime256v1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}


def get_curve(curve_name: str) -> ec.EllipticCurve:
    try:
        return _CURVES[curve_name.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported curve: {curve_name}") from None


def is_valid_hex(value) -> bool:
    """True for a non-empty, even-length string of hex digits."""
    if not isinstance(value, str):
        return False
    return len(value) % 2 == 0 and HEX_PATTERN.fullmatch(value) is not None


def decode_hex(value, field: str = "value") -> bytes:
    if not is_valid_hex(value):
        raise InvalidInput(field)
    return bytes.fromhex(value)


def encode_hex(data: bytes) -> str:
    return bytes(data).hex()


# --- Public keys (SPKI/DER) ---

def public_key_to_der(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def public_key_to_hex(key: ec.EllipticCurvePublicKey) -> str:
    return encode_hex(public_key_to_der(key))


def public_key_from_der(data: bytes, curve_name: str) -> ec.EllipticCurvePublicKey:
    # Canonical only: the parsed key must re-encode to exactly these bytes
    try:
        key = serialization.load_der_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise InvalidInput("publicKey") from None

    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise InvalidInput("publicKey")
    if key.curve.name != get_curve(curve_name).name:
        raise InvalidInput("publicKey")
    if not constant_time_compare(public_key_to_der(key), data):
        raise InvalidInput("publicKey")
    return key


def public_key_from_hex(value, curve_name: str) -> ec.EllipticCurvePublicKey:
    return public_key_from_der(decode_hex(value, "publicKey"), curve_name)


# --- PEM text blocks ---

def private_key_to_pem(key: ec.EllipticCurvePrivateKey) -> str:
    # SEC1 "BEGIN EC PRIVATE KEY" block, unencrypted; protected by file mode
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def public_key_to_pem(key: ec.EllipticCurvePublicKey) -> str:
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def private_key_from_pem(text: str):
    return serialization.load_pem_private_key(text.encode("ascii"), password=None)


def public_key_from_pem(text: str):
    return serialization.load_pem_public_key(text.encode("ascii"))


# --- Persisted key record ---

def encode_key_record(private_key: ec.EllipticCurvePrivateKey) -> str:
    return json.dumps({
        "privateKey": private_key_to_pem(private_key),
        "publicKey": public_key_to_pem(private_key.public_key()),
    })


def decode_key_record(
    text: str, curve_name: str
) -> Tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        raise CorruptKeyStore("Key record is not valid JSON") from None

    if not isinstance(data, dict):
        raise CorruptKeyStore("Key record is not a JSON object")
    private_pem = data.get("privateKey")
    public_pem = data.get("publicKey")
    if not isinstance(private_pem, str) or not isinstance(public_pem, str):
        raise CorruptKeyStore("Key record is missing privateKey or publicKey")

    try:
        private_key = private_key_from_pem(private_pem)
        public_key = public_key_from_pem(public_pem)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise CorruptKeyStore("Key record holds an unreadable PEM block") from None

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise CorruptKeyStore("Stored private key is not an EC key")
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise CorruptKeyStore("Stored public key is not an EC key")
    if private_key.curve.name != get_curve(curve_name).name:
        raise CorruptKeyStore(
            f"Stored key is on {private_key.curve.name}, expected {curve_name}"
        )

    derived = public_key_to_der(private_key.public_key())
    if not constant_time_compare(derived, public_key_to_der(public_key)):
        raise CorruptKeyStore("Stored public key does not match the private key")

    return private_key, public_key
