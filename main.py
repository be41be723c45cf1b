import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import config
from signkeeper.api import router as signing_router
from signkeeper.keystore import KeyStore
from signkeeper.rate_limit import RateLimiter, RateLimitMiddleware
from signkeeper.service import SigningService

logger = logging.getLogger("signkeeper")


def create_app(
    key_file: Optional[Union[str, Path]] = None,
    curve_name: Optional[str] = None,
    rate_limit_max: Optional[int] = None,
    rate_limit_window: Optional[float] = None,
) -> FastAPI:
    key_file = Path(key_file) if key_file is not None else config.KEY_FILE
    curve_name = curve_name or config.CURVE_NAME

    # --- Lifespan manager for startup events ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # The key must be loaded (or generated and written) before any request
        # is served. KeyStoreError propagates and aborts startup.
        keystore = KeyStore(key_file, curve_name=curve_name)
        keystore.initialize()
        app.state.keystore = keystore
        app.state.signing_service = SigningService(keystore)
        logger.info("Signing service ready (%s)", curve_name)
        yield

    app = FastAPI(title="signkeeper", lifespan=lifespan)

    limiter = RateLimiter(
        max_requests=rate_limit_max or config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=rate_limit_window or config.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError):
        # Unparsable bodies get the same shape as other rejected requests
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(signing_router)
    return app


# Creating the app touches no files; the key is loaded in the lifespan.
app = create_app()


def run():
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL)


if __name__ == "__main__":
    run()
