"""Response metrics: latencies, received bytes and classified failures."""

from __future__ import annotations

import asyncio
import concurrent.futures
import errno
import json
import math
import threading
from enum import IntEnum
from typing import Iterator, Optional, TypeVar

import httpx

from kperf.stats import ResponseErrorStats, ResponseStats

_PERCENTILES = (0.0, 0.5, 0.90, 0.95, 0.99, 1.0)

_HTTP2_CLIENT_CONNECTION_LOST = "http2: client connection lost"
_TLS_HANDSHAKE_TIMEOUT = "net/http: TLS handshake timeout"
_UNEXPECTED_EOF = "unexpected EOF"
_CONNECTION_REFUSED = "connection refused"
_CONNECTION_RESET = "connection reset by peer"

_TIMEOUT_ERRORS = (
    TimeoutError,
    asyncio.TimeoutError,
    concurrent.futures.TimeoutError,
    httpx.TimeoutException,
)

# Status reasons reported by the API server and the HTTP code each stands for.
_REASON_CODES = {
    "BadRequest": 400,
    "Unauthorized": 401,
    "Forbidden": 403,
    "NotFound": 404,
    "MethodNotAllowed": 405,
    "NotAcceptable": 406,
    "AlreadyExists": 409,
    "Gone": 410,
    "RequestEntityTooLarge": 413,
    "UnsupportedMediaType": 415,
    "Invalid": 422,
    "TooManyRequests": 429,
    "InternalError": 500,
    "ServiceUnavailable": 503,
    "Timeout": 504,
}


class StatusError(Exception):
    """An error status returned by the API server."""

    def __init__(self, code: int, reason: str = "", message: str = "") -> None:
        super().__init__(message)
        self.code = int(code)
        self.reason = reason
        self.message = message

    def __str__(self) -> str:
        return self.message


class HTTP2ErrCode(IntEnum):
    """HTTP/2 error codes."""

    NO_ERROR = 0x0
    PROTOCOL_ERROR = 0x1
    INTERNAL_ERROR = 0x2
    FLOW_CONTROL_ERROR = 0x3
    SETTINGS_TIMEOUT = 0x4
    STREAM_CLOSED = 0x5
    FRAME_SIZE_ERROR = 0x6
    REFUSED_STREAM = 0x7
    CANCEL = 0x8
    COMPRESSION_ERROR = 0x9
    CONNECT_ERROR = 0xA
    ENHANCE_YOUR_CALM = 0xB
    INADEQUATE_SECURITY = 0xC
    HTTP_1_1_REQUIRED = 0xD


def _code_name(code: int) -> str:
    try:
        return HTTP2ErrCode(code).name
    except ValueError:
        return f"unknown error code 0x{int(code) & 0xFFFFFFFF:x}"


def _go_quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class HTTP2ConnectionError(Exception):
    """A connection-level HTTP/2 error."""

    def __init__(self, code: int) -> None:
        self.code = int(code)
        super().__init__(f"connection error: {_code_name(self.code)}")


class HTTP2StreamError(Exception):
    """A stream-level HTTP/2 error."""

    def __init__(self, stream_id: int, code: int, cause: Optional[BaseException] = None) -> None:
        self.stream_id = stream_id
        self.code = int(code)
        self.cause = cause
        message = f"stream error: stream ID {stream_id}; {_code_name(self.code)}"
        if cause is not None:
            message += f"; {cause}"
        super().__init__(message)


class HTTP2GoAwayError(Exception):
    """The server sent GOAWAY and closed the connection."""

    def __init__(self, last_stream_id: int, err_code: int, debug_data: str = "") -> None:
        self.last_stream_id = last_stream_id
        self.err_code = int(err_code)
        self.debug_data = debug_data
        super().__init__(
            "http2: server sent GOAWAY and closed the connection; "
            f"LastStreamID={last_stream_id}, ErrCode={_code_name(self.err_code)}, "
            f"debug={_go_quote(debug_data)}"
        )


class UnexpectedEOFError(Exception):
    """The response body ended before it was complete."""

    def __init__(self, message: str = _UNEXPECTED_EOF) -> None:
        super().__init__(message)


_E = TypeVar("_E", bound=BaseException)


def _chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _find(err: BaseException, kind: type[_E]) -> Optional[_E]:
    for item in _chain(err):
        if isinstance(item, kind):
            return item
    return None


def _code_from_http(err: BaseException) -> int:
    status = _find(err, StatusError)
    if status is None:
        return 0
    return _REASON_CODES.get(status.reason, status.code)


def _is_http2_error(err: BaseException) -> bool:
    if _find(err, (HTTP2ConnectionError, HTTP2StreamError, HTTP2GoAwayError)) is not None:
        return True
    return _HTTP2_CLIENT_CONNECTION_LOST in str(err)


def _update_http2_error_stats(stats: ResponseErrorStats, err: BaseException) -> None:
    conns = stats.http2_errors.connection_errors
    streams = stats.http2_errors.stream_errors

    conn_err = _find(err, HTTP2ConnectionError)
    if conn_err is not None:
        key = _code_name(conn_err.code)
        conns[key] = conns.get(key, 0) + 1
        return

    stream_err = _find(err, HTTP2StreamError)
    if stream_err is not None:
        key = _code_name(stream_err.code)
        streams[key] = streams.get(key, 0) + 1
        return

    goaway = _find(err, HTTP2GoAwayError)
    if goaway is not None:
        key = (
            "http2: server sent GOAWAY and closed the connection; "
            f"ErrCode={_code_name(goaway.err_code)}, debug={_go_quote(goaway.debug_data)}"
        )
        conns[key] = conns.get(key, 0) + 1
        return

    if _HTTP2_CLIENT_CONNECTION_LOST in str(err):
        conns[_HTTP2_CLIENT_CONNECTION_LOST] = conns.get(_HTTP2_CLIENT_CONNECTION_LOST, 0) + 1


def _is_timeout_error(err: BaseException) -> bool:
    return _find(err, _TIMEOUT_ERRORS) is not None


def _has_errno(err: BaseException, number: int, kind: type[OSError]) -> bool:
    for item in _chain(err):
        if isinstance(item, kind):
            return True
        if isinstance(item, OSError) and item.errno is not None:
            return item.errno == number
    return False


def _is_connection_refused(err: BaseException) -> bool:
    return _has_errno(err, errno.ECONNREFUSED, ConnectionRefusedError)


def _is_connection_reset(err: BaseException) -> bool:
    return _has_errno(err, errno.ECONNRESET, ConnectionResetError)


def _is_unexpected_eof(err: BaseException) -> bool:
    return _find(err, UnexpectedEOFError) is not None


def _is_net_related_error(err: BaseException) -> bool:
    return (
        _is_timeout_error(err)
        or _is_connection_refused(err)
        or _is_connection_reset(err)
        or _is_unexpected_eof(err)
        or _TLS_HANDSHAKE_TIMEOUT in str(err)
    )


def _update_net_errors(stats: ResponseErrorStats, err: BaseException) -> None:
    if _is_timeout_error(err):
        key = str(err)
    elif _is_unexpected_eof(err):
        key = _UNEXPECTED_EOF
    elif _is_connection_refused(err):
        key = _CONNECTION_REFUSED
    elif _is_connection_reset(err):
        key = _CONNECTION_RESET
    elif _TLS_HANDSHAKE_TIMEOUT in str(err):
        key = _TLS_HANDSHAKE_TIMEOUT
    else:
        return
    stats.net_errors[key] = stats.net_errors.get(key, 0) + 1


class ResponseMetric:
    """Thread-safe collector of response measurements."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error_stats = ResponseErrorStats()
        self._received_bytes = 0
        self._latencies_by_url: dict[str, list[float]] = {}

    def observe_latency(self, url: str, seconds: float) -> None:
        """Record the latency of one successful request."""
        with self._lock:
            self._latencies_by_url.setdefault(url, []).append(seconds)

    def observe_failure(self, err: Optional[BaseException]) -> None:
        """Classify and count one failed request."""
        if err is None:
            return
        with self._lock:
            stats = self._error_stats
            code = _code_from_http(err)
            if code != 0:
                stats.response_codes[code] = stats.response_codes.get(code, 0) + 1
            elif _is_http2_error(err):
                _update_http2_error_stats(stats, err)
            elif _is_net_related_error(err):
                _update_net_errors(stats, err)
            else:
                stats.unknown_errors.append(str(err))

    def observe_received_bytes(self, nbytes: int) -> None:
        """Add to the number of bytes read from the server."""
        with self._lock:
            self._received_bytes += nbytes

    def gather(self) -> ResponseStats:
        """Return a snapshot of everything observed so far."""
        with self._lock:
            return ResponseStats(
                error_stats=self._error_stats.copy(),
                latencies_by_url={u: list(l) for u, l in self._latencies_by_url.items()},
                total_received_bytes=self._received_bytes,
            )


def build_percentile_latencies(latencies: list[float]) -> list[tuple[float, float]]:
    """Return (percentile, latency) pairs for the fixed set of percentiles."""
    if not latencies:
        return []
    ordered = sorted(latencies)
    n = len(ordered)
    result = []
    for pv in _PERCENTILES:
        idx = math.ceil(n * pv)
        if idx > 0:
            idx -= 1
        result.append((pv, ordered[idx]))
    return result