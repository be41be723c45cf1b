# config.py
import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.getenv("SIGNKEEPER_DATA_DIR", BASE_DIR / "data"))

# Persisted key pair (JSON with two PEM blocks, mode 0600)
# Deleting this file means the old key is gone for good; a new one is generated on start
KEY_FILE = Path(os.getenv("SIGNKEEPER_KEY_FILE", DATA_DIR / "signing_key.json"))

# Curve for newly generated keys; an existing key file on another curve is refused
# Options: "secp256k1", "secp256r1", "secp384r1", "secp521r1"
CURVE_NAME = os.getenv("SIGNKEEPER_CURVE", "secp256k1")

# Server listening host
# "127.0.0.1" means only accessible from the local machine
# "0.0.0.0" means accessible from other machines on the network
HOST = os.getenv("HOST", "127.0.0.1")

# Server listening port
PORT = int(os.getenv("PORT", "3000"))

# Logging level for Uvicorn and the application
# Options: "debug", "info", "warning", "error", "critical"
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

# Rate limiting: at most RATE_LIMIT_MAX_REQUESTS per client IP per window
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
