"""
Proxy for the Google Apps Script backend.

Every inbound REST call is reshaped into the single POST {path, action, data}
envelope the Apps Script web app understands, and the answer (or a typed
error) is relayed back with the same CORS headers on every response.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import httpx

from app.modules.proxy.schemas import ProxyRequest, ProxyResponse, UpstreamEnvelope

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-api-key, x-client-version",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Content-Type": "application/json",
}

METHOD_ACTIONS = {
    "GET": "get",
    "POST": "create",
    "PUT": "update",
    "DELETE": "delete",
}

INVALID_BODY_ERROR = "Invalid JSON in request body"
TIMEOUT_ERROR = "Request timeout - GAS API took too long to respond"
INVALID_RESPONSE_ERROR = "Invalid response from GAS API"
INTERNAL_ERROR = "Internal server error"
DETAILS_MAX_LENGTH = 200


class EnvelopeError(ValueError):
    """Inbound request that cannot be turned into an upstream envelope"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def extract_api_path(path: str, prefix: str) -> str:
    """Strip the mount prefix from an inbound path; "/" when nothing is left."""
    prefix = prefix.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):]
    return path or "/"


def build_envelope(request: ProxyRequest) -> UpstreamEnvelope:
    """
    Map an inbound request to the upstream envelope.

    GET sends its query parameters as data; POST/PUT/DELETE send the parsed
    JSON body ({} when empty). Any other verb is rejected instead of being
    treated as a delete.
    """
    method = request.method.upper()
    action = METHOD_ACTIONS.get(method)
    if action is None:
        raise EnvelopeError(f"Unsupported method: {method}")

    if method == "GET":
        return UpstreamEnvelope(path=request.path, action=action, data=dict(request.query_params))

    body = request.body
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        data = json.loads(body) if body else {}
    except ValueError:  # includes UnicodeDecodeError
        raise EnvelopeError(INVALID_BODY_ERROR)
    return UpstreamEnvelope(path=request.path, action=action, data=data)


def json_response(status_code: int, payload: Any) -> ProxyResponse:
    return ProxyResponse(
        status_code=status_code,
        headers=dict(CORS_HEADERS),
        body=json.dumps(payload),
    )


def error_response(status_code: int, error: str, details: Optional[str] = None) -> ProxyResponse:
    payload: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        payload["details"] = details
    return json_response(status_code, payload)


def preflight_response() -> ProxyResponse:
    return ProxyResponse(status_code=200, headers=dict(CORS_HEADERS), body="")


class GasProxy:
    def __init__(
        self,
        gas_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.gas_url = gas_url
        self.timeout = timeout
        self.transport = transport

    async def handle(self, request: ProxyRequest) -> ProxyResponse:
        """Answer one inbound request; never raises"""
        if request.method.upper() == "OPTIONS":
            return preflight_response()

        try:
            envelope = build_envelope(request)
        except EnvelopeError as e:
            logger.warning(f"Rejected {request.method} {request.path}: {e.message}")
            return error_response(e.status_code, e.message)

        logger.info(f"GAS proxy: {request.method.upper()} {envelope.path}")

        if not self.gas_url:
            logger.error("GAS_URL is not configured")
            return error_response(500, INTERNAL_ERROR, details="GAS_URL is not configured")

        logger.debug(f"Proxying to GAS: {envelope.model_dump()}")
        try:
            response = await asyncio.wait_for(self._send(envelope), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(f"GAS request timed out after {self.timeout}s: {envelope.path}")
            return error_response(504, TIMEOUT_ERROR)
        except Exception as e:
            logger.exception("GAS proxy error: %s", e)
            return error_response(500, INTERNAL_ERROR, details=str(e))

        return self._relay(response, envelope.path)

    async def _send(self, envelope: UpstreamEnvelope) -> httpx.Response:
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            return await client.post(
                self.gas_url,
                json=envelope.model_dump(),
                headers={"Content-Type": "application/json"},
            )

    def _relay(self, response: httpx.Response, api_path: str) -> ProxyResponse:
        if not response.is_success:
            logger.error(f"GAS response error: {response.status_code} {response.reason_phrase}")
            return error_response(
                response.status_code,
                f"GAS API Error: {response.status_code} {response.reason_phrase}",
            )

        response_text = response.text
        logger.debug(f"GAS response received, length: {len(response_text)}")
        try:
            payload = json.loads(response_text)
        except ValueError:
            logger.error(f"Error parsing GAS response: {response_text[:500]}")
            return error_response(502, INVALID_RESPONSE_ERROR, details=response_text[:DETAILS_MAX_LENGTH])

        logger.info(f"GAS proxy successful for: {api_path}")
        return json_response(200, payload)
