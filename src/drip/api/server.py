"""HTTP API for DRIP faucet.

Endpoints:
- POST /api/v1/retrieve: request gas for a wallet address

Every route is rate limited per client IP. Any failure in the retrieve
handler is answered with 400 and the error message as plain text.
"""

import json
import logging
import time
import uuid

from aiohttp import web

from drip.faucet.rate_limiter import RATE_LIMIT_MESSAGE, RateLimiter
from drip.faucet.service import FaucetService
from drip.observability.logging import clear_request_id, set_request_id
from drip.observability.metrics import RATE_LIMITED, REQUEST_DURATION, REQUESTS

logger = logging.getLogger(__name__)

FAUCET_KEY = web.AppKey("faucet", FaucetService)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RateLimiter)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class BadRequestError(ValueError):
    """Raised when the request body cannot be used."""


def client_ip(request: web.Request) -> str:
    """Get the requester IP from X-Forwarded-For, else the socket peer.

    Assumes exactly one trusted proxy in front of the service, so only the
    last entry (the one that proxy appended) is used; earlier entries are
    client-supplied and can be forged.
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    last = forwarded.split(",")[-1].strip()
    if last:
        return last
    return request.remote or "unknown"


async def read_wallet_address(request: web.Request) -> str:
    """Extract ``walletAddress`` from a JSON or form-encoded body.

    Raises
    ------
    BadRequestError
        If there is no body, it cannot be parsed, or the field is missing.
    """
    if not request.body_exists:
        raise BadRequestError("Bad Request")

    if request.content_type == "application/json":
        try:
            body = await request.json()
        except json.JSONDecodeError as e:
            raise BadRequestError(f"Invalid JSON body: {e.msg}") from e
        if not isinstance(body, dict):
            raise BadRequestError("Request body must be a JSON object.")
    elif request.content_type in FORM_CONTENT_TYPES:
        body = dict(await request.post())
    else:
        raise BadRequestError("Bad Request")

    wallet_address = body.get("walletAddress")
    if not isinstance(wallet_address, str) or not wallet_address.strip():
        raise BadRequestError("walletAddress is required.")
    return wallet_address


@web.middleware
async def request_id_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Tag every log line of a request with a request ID."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    set_request_id(request_id)
    try:
        response = await handler(request)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_request_id()


@web.middleware
async def rate_limit_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Cap requests per client IP across all routes."""
    limiter = request.app[RATE_LIMITER_KEY]
    result = await limiter.hit(client_ip(request))

    headers = {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_seconds),
    }

    if not result.allowed:
        RATE_LIMITED.inc()
        logger.warning("Rate limit exceeded", extra={"ip": client_ip(request)})
        headers["Retry-After"] = str(result.reset_seconds)
        return web.Response(status=429, text=RATE_LIMIT_MESSAGE, headers=headers)

    response = await handler(request)
    response.headers.update(headers)
    return response


async def handle_retrieve(request: web.Request) -> web.Response:
    """Handle POST /api/v1/retrieve."""
    faucet = request.app[FAUCET_KEY]
    started = time.perf_counter()
    ip_address = client_ip(request)

    try:
        wallet_address = await read_wallet_address(request)
        result = await faucet.retrieve(wallet_address, ip_address)
    except BadRequestError as e:
        REQUESTS.labels(status="bad_request").inc()
        return web.Response(status=400, text=str(e))
    except Exception as e:
        logger.error(
            "Retrieve request failed",
            extra={"ip": ip_address, "error": str(e)},
            exc_info=True,
        )
        REQUESTS.labels(status="error").inc()
        return web.Response(status=400, text=str(e))
    finally:
        REQUEST_DURATION.observe(time.perf_counter() - started)

    REQUESTS.labels(status=result.status).inc()
    if not result.success:
        logger.info(
            "Retrieve request rejected",
            extra={"ip": ip_address, "status": result.status, "reason": result.message},
        )
        return web.Response(status=400, text=result.message)

    return web.json_response({"txHash": result.tx_hash, "status": result.message})


def create_app(faucet: FaucetService, rate_limiter: RateLimiter) -> web.Application:
    """Build the faucet API application.

    Parameters
    ----------
    faucet : FaucetService
        Service handling gas requests.
    rate_limiter : RateLimiter
        Per-IP limiter applied to every route.

    Returns
    -------
    web.Application
        The configured application.
    """
    app = web.Application(middlewares=[request_id_middleware, rate_limit_middleware])
    app[FAUCET_KEY] = faucet
    app[RATE_LIMITER_KEY] = rate_limiter
    app.router.add_post("/api/v1/retrieve", handle_retrieve)
    return app


class ApiServer:
    """HTTP server for the faucet API.

    Parameters
    ----------
    faucet : FaucetService
        Service handling gas requests.
    rate_limiter : RateLimiter
        Per-IP limiter applied to every route.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    def __init__(
        self,
        faucet: FaucetService,
        rate_limiter: RateLimiter,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 3001,
    ):
        self._app = create_app(faucet, rate_limiter)
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def app(self) -> web.Application:
        """The underlying aiohttp application."""
        return self._app

    async def start(self) -> None:
        """Start serving the API."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info("API server listening", extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        """Stop serving the API."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")
