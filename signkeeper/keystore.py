# keystore.py
import logging
import os
import stat
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec

from . import codec
from .errors import CorruptKeyStore, KeyGenerationFailed, KeyStoreError

logger = logging.getLogger(__name__)

OWNER_READ_WRITE = stat.S_IRUSR | stat.S_IWUSR  # 0600


@dataclass(frozen=True)
class Keypair:
    private_key: ec.EllipticCurvePrivateKey = field(repr=False)
    public_key: ec.EllipticCurvePublicKey


class KeyStore:
    """Owns the key pair for the lifetime of the process. Only the Signer reads the private key."""

    def __init__(self, storage_path: Union[str, Path], curve_name: str = "secp256k1"):
        codec.get_curve(curve_name)  # unknown curves fail here, not at first use
        self._path = Path(storage_path)
        self._curve_name = curve_name
        self._keypair: Optional[Keypair] = None
        self._lock = threading.Lock()

    @property
    def storage_path(self) -> Path:
        return self._path

    @property
    def curve_name(self) -> str:
        return self._curve_name

    @property
    def initialized(self) -> bool:
        return self._keypair is not None

    def initialize(self) -> Keypair:
        """Load the persisted key pair, or generate and persist a new one."""
        with self._lock:
            if self._keypair is None:
                if self._path.exists():
                    self._keypair = self._load()
                else:
                    self._keypair = self._generate()
            return self._keypair

    def _load(self) -> Keypair:
        self._restrict_permissions()
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            raise CorruptKeyStore(f"Failed to read key file {self._path}: {e}") from e

        private_key, public_key = codec.decode_key_record(text, self._curve_name)
        logger.info("Loaded %s signing key from %s", self._curve_name, self._path)
        return Keypair(private_key=private_key, public_key=public_key)

    def _restrict_permissions(self) -> None:
        try:
            mode = stat.S_IMODE(self._path.stat().st_mode)
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                logger.warning(
                    "Key file %s had mode %03o, restricting to 600", self._path, mode
                )
                os.chmod(self._path, OWNER_READ_WRITE)
        except OSError as e:
            raise KeyStoreError(f"Cannot restrict permissions on {self._path}: {e}") from e

    def _generate(self) -> Keypair:
        logger.info("Generating new %s key pair at %s", self._curve_name, self._path)
        try:
            private_key = ec.generate_private_key(codec.get_curve(self._curve_name))
            record = codec.encode_key_record(private_key)
        except Exception as e:
            raise KeyGenerationFailed("Key generation failed") from e

        try:
            created = self._publish(record)
        except OSError as e:
            raise KeyGenerationFailed(f"Failed to write key file {self._path}: {e}") from e

        if not created:
            # Another process won the race; its key is the one on disk.
            logger.info("Key file %s appeared concurrently, loading it", self._path)
            return self._load()
        return Keypair(private_key=private_key, public_key=private_key.public_key())

    def _publish(self, record: str) -> bool:
        # final path is either absent or holds a complete record; False if it already existed
        directory = self._path.parent
        directory.mkdir(mode=0o700, parents=True, exist_ok=True)

        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, OWNER_READ_WRITE)
            try:
                os.link(tmp_name, self._path)
            except FileExistsError:
                return False
            return True
        finally:
            os.unlink(tmp_name)

    def _require_keypair(self) -> Keypair:
        if self._keypair is None:
            raise RuntimeError("Signing key not loaded.")
        return self._keypair

    def get_private_key(self) -> ec.EllipticCurvePrivateKey:
        return self._require_keypair().private_key

    def get_public_key(self) -> ec.EllipticCurvePublicKey:
        return self._require_keypair().public_key

    def get_public_key_hex(self) -> str:
        """SPKI/DER encoding of the public key, as lowercase hex."""
        return codec.public_key_to_hex(self.get_public_key())
