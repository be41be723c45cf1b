"""
Tests for key custody: generate-or-load, file permissions, corruption handling.
"""
import json
import os
import stat
import threading

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from signkeeper.errors import CorruptKeyStore, KeyGenerationFailed
from signkeeper.keystore import KeyStore


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


class TestGeneration:

    def test_generates_key_file_on_first_start(self, key_file):
        store = KeyStore(key_file)
        assert not key_file.exists()

        store.initialize()

        assert key_file.exists()
        assert store.initialized
        data = json.loads(key_file.read_text())
        assert set(data) == {"privateKey", "publicKey"}

    def test_key_file_is_owner_only(self, key_file):
        KeyStore(key_file).initialize()
        assert _mode(key_file) == 0o600

    def test_no_temp_files_left_behind(self, key_file):
        KeyStore(key_file).initialize()
        assert list(key_file.parent.iterdir()) == [key_file]

    def test_default_curve_is_secp256k1(self, keystore):
        assert keystore.curve_name == "secp256k1"
        assert keystore.get_public_key().curve.name == "secp256k1"

    def test_other_curve(self, tmp_path):
        store = KeyStore(tmp_path / "p256.json", curve_name="secp256r1")
        store.initialize()
        assert store.get_private_key().curve.name == "secp256r1"

    def test_unknown_curve_rejected_at_construction(self, key_file):
        with pytest.raises(ValueError):
            KeyStore(key_file, curve_name="nope")

    def test_generation_failure(self, key_file, monkeypatch):
        def broken(curve):
            raise RuntimeError("entropy source unavailable")

        monkeypatch.setattr(ec, "generate_private_key", broken)

        with pytest.raises(KeyGenerationFailed):
            KeyStore(key_file).initialize()
        assert not key_file.exists()

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        with pytest.raises(KeyGenerationFailed):
            KeyStore(blocker / "signing_key.json").initialize()


class TestPersistence:

    def test_restart_loads_same_key(self, key_file):
        first = KeyStore(key_file)
        first.initialize()

        second = KeyStore(key_file)
        second.initialize()

        assert second.get_public_key_hex() == first.get_public_key_hex()

    def test_existing_file_is_not_rewritten(self, key_file):
        KeyStore(key_file).initialize()
        before = key_file.read_bytes()
        mtime = key_file.stat().st_mtime_ns

        KeyStore(key_file).initialize()

        assert key_file.read_bytes() == before
        assert key_file.stat().st_mtime_ns == mtime

    def test_deleting_key_file_yields_new_key(self, key_file):
        first = KeyStore(key_file)
        first.initialize()
        key_file.unlink()

        second = KeyStore(key_file)
        second.initialize()

        assert second.get_public_key_hex() != first.get_public_key_hex()

    def test_initialize_is_idempotent(self, keystore):
        assert keystore.initialize() is keystore.initialize()

    def test_loose_permissions_are_tightened(self, key_file):
        KeyStore(key_file).initialize()
        os.chmod(key_file, 0o644)

        KeyStore(key_file).initialize()

        assert _mode(key_file) == 0o600

    def test_concurrent_first_start_agrees_on_one_key(self, key_file):
        stores = [KeyStore(key_file) for _ in range(8)]
        barrier = threading.Barrier(len(stores))

        def start(store):
            barrier.wait()
            store.initialize()

        threads = [threading.Thread(target=start, args=(s,)) for s in stores]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        on_disk = KeyStore(key_file)
        on_disk.initialize()
        assert {s.get_public_key_hex() for s in stores} == {on_disk.get_public_key_hex()}


class TestCorruption:

    @pytest.mark.parametrize("content", ["", "{", "{}", '{"privateKey": "", "publicKey": ""}', "[" * 200000])
    def test_corrupt_file(self, key_file, content):
        key_file.parent.mkdir(parents=True)
        key_file.write_text(content)
        os.chmod(key_file, 0o600)

        with pytest.raises(CorruptKeyStore):
            KeyStore(key_file).initialize()

    def test_corrupt_file_is_left_untouched(self, key_file):
        key_file.parent.mkdir(parents=True)
        key_file.write_text("garbage")

        with pytest.raises(CorruptKeyStore):
            KeyStore(key_file).initialize()
        assert key_file.read_text() == "garbage"

    def test_key_on_unexpected_curve(self, tmp_path):
        path = tmp_path / "key.json"
        KeyStore(path, curve_name="secp256r1").initialize()

        with pytest.raises(CorruptKeyStore):
            KeyStore(path, curve_name="secp256k1").initialize()


class TestAccess:

    def test_accessors_require_initialization(self, key_file):
        store = KeyStore(key_file)
        with pytest.raises(RuntimeError):
            store.get_private_key()
        with pytest.raises(RuntimeError):
            store.get_public_key_hex()

    def test_public_key_hex_is_deterministic(self, keystore):
        assert keystore.get_public_key_hex() == keystore.get_public_key_hex()

    def test_repr_hides_private_key(self, keystore):
        keypair = keystore.initialize()
        assert "private_key" not in repr(keypair)

    def test_keypair_is_immutable(self, keystore):
        keypair = keystore.initialize()
        with pytest.raises(AttributeError):
            keypair.private_key = None
