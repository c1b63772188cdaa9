"""Benchmark statistics, runner reports and runner group descriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from kperf.loadprofile import LoadProfile


def _merge_counts(to: dict, source: dict) -> None:
    for key, value in source.items():
        to[key] = to.get(key, 0) + value


def _counts(data: Any) -> dict[str, int]:
    return {str(k): int(v) for k, v in (data or {}).items()}


@dataclass
class HTTP2ErrorStats:
    """HTTP/2 errors seen during testing."""

    connection_errors: dict[str, int] = field(default_factory=dict)
    stream_errors: dict[str, int] = field(default_factory=dict)


@dataclass
class ResponseErrorStats:
    """Errors seen during testing, grouped by kind."""

    unknown_errors: list[str] = field(default_factory=list)
    net_errors: dict[str, int] = field(default_factory=dict)
    response_codes: dict[int, int] = field(default_factory=dict)
    http2_errors: HTTP2ErrorStats = field(default_factory=HTTP2ErrorStats)

    def copy(self) -> "ResponseErrorStats":
        """Return an independent copy."""
        return ResponseErrorStats(
            unknown_errors=list(self.unknown_errors),
            net_errors=dict(self.net_errors),
            response_codes=dict(self.response_codes),
            http2_errors=HTTP2ErrorStats(
                connection_errors=dict(self.http2_errors.connection_errors),
                stream_errors=dict(self.http2_errors.stream_errors),
            ),
        )

    def merge(self, other: "ResponseErrorStats") -> None:
        """Add the counts of other into self."""
        self.unknown_errors.extend(other.unknown_errors)
        _merge_counts(self.net_errors, other.net_errors)
        _merge_counts(self.response_codes, other.response_codes)
        _merge_counts(
            self.http2_errors.connection_errors, other.http2_errors.connection_errors
        )
        _merge_counts(self.http2_errors.stream_errors, other.http2_errors.stream_errors)

    def to_dict(self) -> dict:
        http2: dict[str, Any] = {}
        if self.http2_errors.connection_errors:
            http2["connectionErrors"] = dict(self.http2_errors.connection_errors)
        if self.http2_errors.stream_errors:
            http2["streamErrors"] = dict(self.http2_errors.stream_errors)
        return {
            "unknownErrors": list(self.unknown_errors),
            "netErrors": dict(self.net_errors),
            "responseCodes": {str(k): v for k, v in self.response_codes.items()},
            "http2Errors": http2,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ResponseErrorStats":
        data = data or {}
        http2 = data.get("http2Errors") or {}
        return cls(
            unknown_errors=[str(e) for e in data.get("unknownErrors") or []],
            net_errors=_counts(data.get("netErrors")),
            response_codes={
                int(k): int(v) for k, v in (data.get("responseCodes") or {}).items()
            },
            http2_errors=HTTP2ErrorStats(
                connection_errors=_counts(http2.get("connectionErrors")),
                stream_errors=_counts(http2.get("streamErrors")),
            ),
        )


@dataclass
class ResponseStats:
    """Raw result of a benchmark run."""

    error_stats: ResponseErrorStats = field(default_factory=ResponseErrorStats)
    latencies_by_url: dict[str, list[float]] = field(default_factory=dict)
    total_received_bytes: int = 0


def _pairs_out(pairs: Optional[list]) -> Optional[list]:
    if pairs is None:
        return None
    return [[float(p), float(v)] for p, v in pairs]


def _pairs_in(pairs: Optional[list]) -> Optional[list[tuple[float, float]]]:
    if pairs is None:
        return None
    return [(float(p), float(v)) for p, v in pairs]


@dataclass
class RunnerMetricReport:
    """Summary report of one runner, or of all runner groups."""

    total: int = 0
    duration: str = ""
    error_stats: ResponseErrorStats = field(default_factory=ResponseErrorStats)
    total_received_bytes: int = 0
    latencies_by_url: dict[str, list[float]] = field(default_factory=dict)
    percentile_latencies: Optional[list[tuple[float, float]]] = field(default_factory=list)
    percentile_latencies_by_url: dict[str, Optional[list[tuple[float, float]]]] = field(
        default_factory=dict
    )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "total": self.total,
            "duration": self.duration,
            "errorStats": self.error_stats.to_dict(),
            "totalReceivedBytes": self.total_received_bytes,
        }
        if self.latencies_by_url:
            out["latenciesByURL"] = {
                u: [float(x) for x in l] for u, l in self.latencies_by_url.items()
            }
        if self.percentile_latencies:
            out["percentileLatencies"] = _pairs_out(self.percentile_latencies)
        if self.percentile_latencies_by_url:
            out["percentileLatenciesByURL"] = {
                u: _pairs_out(p) for u, p in self.percentile_latencies_by_url.items()
            }
        return out

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RunnerMetricReport":
        data = data or {}
        return cls(
            total=int(data.get("total") or 0),
            duration=str(data.get("duration") or ""),
            error_stats=ResponseErrorStats.from_dict(data.get("errorStats")),
            total_received_bytes=int(data.get("totalReceivedBytes") or 0),
            latencies_by_url={
                str(u): [float(x) for x in l or []]
                for u, l in (data.get("latenciesByURL") or {}).items()
            },
            percentile_latencies=_pairs_in(data.get("percentileLatencies")) or [],
            percentile_latencies_by_url={
                str(u): _pairs_in(p)
                for u, p in (data.get("percentileLatenciesByURL") or {}).items()
            },
        )


class RunnerGroupStatusState(str, Enum):
    """Current state of a runner group."""

    UNKNOWN = "unknown"
    RUNNING = "running"
    FINISHED = "finished"


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class RunnerGroupSpec:
    """How a runner group works."""

    count: int = 0
    profile: Optional[LoadProfile] = None
    node_affinity: Optional[dict[str, list[str]]] = None
    service_account: Optional[str] = None
    owner_reference: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"count": self.count}
        if self.profile is not None:
            out["loadProfile"] = self.profile.to_dict()
        if self.node_affinity:
            out["nodeAffinity"] = {k: list(v) for k, v in self.node_affinity.items()}
        if self.service_account is not None:
            out["serviceAccount"] = self.service_account
        if self.owner_reference is not None:
            out["ownerReference"] = self.owner_reference
        return out

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RunnerGroupSpec":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("runner group spec must be a mapping")
        profile = data.get("loadProfile")
        affinity = data.get("nodeAffinity")
        sa = data.get("serviceAccount")
        owner = data.get("ownerReference")
        return cls(
            count=int(data.get("count") or 0),
            profile=None if profile is None else LoadProfile.from_dict(profile),
            node_affinity=None
            if affinity is None
            else {str(k): [str(x) for x in v or []] for k, v in affinity.items()},
            service_account=None if sa is None else str(sa),
            owner_reference=None if owner is None else str(owner),
        )


@dataclass
class RunnerGroupStatus:
    """Current state of a runner group."""

    state: str = RunnerGroupStatusState.UNKNOWN.value
    start_time: Optional[datetime] = None
    succeeded: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        state = self.state
        if isinstance(state, RunnerGroupStatusState):
            state = state.value
        out: dict[str, Any] = {"state": state}
        if self.start_time is not None:
            out["startTime"] = _format_time(self.start_time)
        out["succeeded"] = self.succeeded
        out["failed"] = self.failed
        return out

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RunnerGroupStatus":
        data = data or {}
        start = data.get("startTime")
        return cls(
            state=str(data.get("state") or ""),
            start_time=None if start is None else _parse_time(str(start)),
            succeeded=int(data.get("succeeded") or 0),
            failed=int(data.get("failed") or 0),
        )


@dataclass
class RunnerGroup:
    """A set of runners sharing one load profile."""

    name: str = ""
    spec: Optional[RunnerGroupSpec] = None
    status: Optional[RunnerGroupStatus] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "name": self.name,
            "spec": None if self.spec is None else self.spec.to_dict(),
        }
        if self.status is not None:
            out["status"] = self.status.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RunnerGroup":
        data = data or {}
        spec = data.get("spec")
        status = data.get("status")
        return cls(
            name=str(data.get("name") or ""),
            spec=None if spec is None else RunnerGroupSpec.from_dict(spec),
            status=None if status is None else RunnerGroupStatus.from_dict(status),
        )