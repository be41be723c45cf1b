"""
Shared fixtures: key stores backed by temporary key files.
"""
import pytest

from signkeeper.keystore import KeyStore
from signkeeper.service import SigningService


@pytest.fixture
def key_file(tmp_path):
    return tmp_path / "keys" / "signing_key.json"


@pytest.fixture
def keystore(key_file):
    store = KeyStore(key_file)
    store.initialize()
    return store


@pytest.fixture
def other_keystore(tmp_path):
    """An unrelated key pair on the same curve."""
    store = KeyStore(tmp_path / "other" / "signing_key.json")
    store.initialize()
    return store


@pytest.fixture
def service(keystore):
    return SigningService(keystore)
