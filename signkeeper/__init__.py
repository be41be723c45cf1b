"""signkeeper - a small ECDSA signing oracle."""

__version__ = "1.0.0"
