# errors.py


class SignKeeperError(Exception):
    """Base class for all signkeeper errors."""


class InvalidInput(SignKeeperError):
    """A caller-supplied field is malformed. Only the field name is kept, never the value."""

    def __init__(self, field: str = "value"):
        self.field = field
        super().__init__(f"Invalid {field}")


class SigningFailed(SignKeeperError):
    """The signing primitive failed. The message is deliberately opaque."""

    def __init__(self):
        super().__init__("Signing failed")


class KeyStoreError(SignKeeperError):
    """Startup-time key custody failure. The service must not start."""


class KeyGenerationFailed(KeyStoreError):
    pass


class CorruptKeyStore(KeyStoreError):
    pass
