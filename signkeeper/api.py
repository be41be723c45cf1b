# api.py
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from .codec import is_valid_hex
from .errors import InvalidInput, SigningFailed
from .service import SigningService

router = APIRouter(tags=["Signing"])


def get_service(request: Request) -> SigningService:
    # Set by the lifespan in main.py once the key store is initialized
    return request.app.state.signing_service


def _field(data: Any, name: str):
    return data.get(name) if isinstance(data, dict) else None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/health")
def health(service: SigningService = Depends(get_service)):
    """Sign and verify a fixed hash to prove the key is usable."""
    try:
        result = service.self_test()
    except SigningFailed:
        return JSONResponse(status_code=503, content={"status": "error"})
    return {"status": "ok", "signer": result}


@router.post("/sign")
def sign(data: Any = Body(None), service: SigningService = Depends(get_service)):
    hash_hex = _field(data, "hash")
    if not is_valid_hex(hash_hex):
        return _error(400, "Hash (hex) required")

    try:
        signature = service.sign_hash(hash_hex)
    except InvalidInput:
        return _error(400, "Hash (hex) required")
    except SigningFailed:
        return _error(500, "Signing failed")
    return {"signature": signature}


@router.post("/verify")
def verify(data: Any = Body(None), service: SigningService = Depends(get_service)):
    hash_hex = _field(data, "hash")
    signature_hex = _field(data, "signature")
    public_key_hex = _field(data, "publicKey")

    if not all(is_valid_hex(v) for v in (hash_hex, signature_hex, public_key_hex)):
        return _error(400, "Hash, signature, publicKey (hex) required")

    return {"valid": service.verify_signature(hash_hex, signature_hex, public_key_hex)}


@router.get("/getPublicKey")
def get_public_key(service: SigningService = Depends(get_service)):
    return {"publicKey": service.export_public_key()}
