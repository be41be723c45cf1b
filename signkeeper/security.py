# security.py
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def constant_time_compare(a: BytesLike, b: BytesLike) -> bool:
    # XOR every byte pair into an accumulator; only a length mismatch returns early.
    # str inputs are compared by their UTF-8 encoding.
    left = _as_bytes(a)
    right = _as_bytes(b)

    if len(left) != len(right):
        return False

    result = 0
    for x, y in zip(left, right):
        result |= x ^ y
    return result == 0
