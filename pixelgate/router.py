"""Prefix-based request routing with request IDs, client IPs and access logging."""

from __future__ import annotations

import logging
import re
import secrets
import string
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pixelgate.timer import RequestTimer, _format_duration

logger = logging.getLogger(__name__)

X_REQUEST_ID = "X-Request-ID"
SERVER_NAME = "pixelgate"

_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9_\-]+")
_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
_ID_LENGTH = 21


@dataclass
class Request:
    """An incoming request as seen by the router and handlers."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    remote_addr: str = ""
    request_uri: str = ""
    timer: RequestTimer | None = None

    def __post_init__(self) -> None:
        if not self.request_uri:
            self.request_uri = self.path

    def header(self, name: str) -> str:
        """Return a header value, matching the name case-insensitively, or ''."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


@dataclass
class Response:
    """The response a handler fills in."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


Handler = Callable[[str, Response, Request], None]


@dataclass(frozen=True)
class _Route:
    method: str
    prefix: str
    handler: Handler
    exact: bool

    def matches(self, request: Request) -> bool:
        if self.method != request.method:
            return False
        if self.exact:
            return request.path == self.prefix
        return request.path.startswith(self.prefix)


def _new_request_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _split_host_port(addr: str) -> tuple[str, str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0 or not addr[end + 1:].startswith(":"):
            raise ValueError(f"invalid address: {addr}")
        return addr[1:end], addr[end + 2:]
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address: {addr}")
    if ":" in host:
        raise ValueError(f"too many colons in address: {addr}")
    return host, port


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _client_ip(request: Request) -> str:
    try:
        return _split_host_port(request.remote_addr)[0]
    except ValueError:
        return ""


def replace_remote_addr(request: Request, ip: str) -> None:
    """Replace the client address host, keeping the port (80 when unknown)."""
    try:
        _, port = _split_host_port(request.remote_addr)
    except ValueError:
        port = "80"
    request.remote_addr = _join_host_port(ip.strip(), port)


def log_request(req_id: str, request: Request) -> dict[str, Any]:
    """Log the start of a request and return the logged fields."""
    fields: dict[str, Any] = {
        "request_id": req_id,
        "method": request.method,
        "client_ip": _client_ip(request),
    }
    logger.info("Started %s", request.request_uri, extra={"fields": fields})
    return fields


def log_response(
    req_id: str,
    request: Request,
    status: int,
    error: BaseException | None,
    *args: Mapping[str, Any],
) -> dict[str, Any]:
    """Log the completion of a request and return the logged fields."""
    if status >= 500:
        level = logging.ERROR
    elif status >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    fields: dict[str, Any] = {
        "request_id": req_id,
        "method": request.method,
        "status": status,
        "client_ip": _client_ip(request),
    }

    if error is not None:
        fields["error"] = error
        if error.__traceback__ is not None:
            fields["stack"] = "".join(traceback.format_tb(error.__traceback__))

    for extra in args:
        fields.update(extra)

    elapsed = request.timer.elapsed() if request.timer is not None else 0.0
    logger.log(
        level,
        "Completed in %s %s",
        _format_duration(elapsed),
        request.request_uri,
        extra={"fields": fields},
    )
    return fields


class Router:
    """Dispatches requests to the first route whose method and path prefix match."""

    def __init__(self, prefix: str = "", write_timeout: float = 10.0) -> None:
        self.prefix = prefix
        self.write_timeout = write_timeout
        self.routes: list[_Route] = []

    def add(self, method: str, prefix: str, handler: Handler, exact: bool = False) -> None:
        self.routes.append(_Route(method, self.prefix + prefix, handler, exact))

    def get(self, prefix: str, handler: Handler, exact: bool = False) -> None:
        self.add("GET", prefix, handler, exact)

    def options(self, prefix: str, handler: Handler, exact: bool = False) -> None:
        self.add("OPTIONS", prefix, handler, exact)

    def head(self, prefix: str, handler: Handler, exact: bool = False) -> None:
        self.add("HEAD", prefix, handler, exact)

    def handle(self, request: Request) -> Response:
        """Route a request and return the response its handler produced."""
        request.timer = RequestTimer(self.write_timeout)
        response = Response()

        try:
            req_id = request.header(X_REQUEST_ID)
            if not req_id or not _REQUEST_ID_RE.fullmatch(req_id):
                req_id = _new_request_id()

            response.headers["Server"] = SERVER_NAME
            response.headers[X_REQUEST_ID] = req_id

            if ip := request.header("CF-Connecting-IP"):
                replace_remote_addr(request, ip)
            elif ip := request.header("X-Forwarded-For"):
                index = ip.find(",")
                if index > 0:
                    ip = ip[:index]
                replace_remote_addr(request, ip)
            elif ip := request.header("X-Real-IP"):
                replace_remote_addr(request, ip)

            log_request(req_id, request)

            for route in self.routes:
                if route.matches(request):
                    route.handler(req_id, response, request)
                    return response

            logger.warning("Route for %s is not defined", request.path)
            response.status = 404
            return response
        finally:
            request.timer.cancel()