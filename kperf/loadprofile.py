"""Load profile definitions: the traffic a runner sends to the API server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import yaml


class ContentType(str):
    """Format of the response body requested from the API server."""

    JSON: "ContentType"
    PROTOBUF: "ContentType"

    def validate(self) -> None:
        """Raise ValueError if the content type is not supported."""
        if self not in _SUPPORTED_CONTENT_TYPES:
            raise ValueError(f"unsupported content type {str(self)}")


ContentType.JSON = ContentType("json")
ContentType.PROTOBUF = ContentType("protobuf")
_SUPPORTED_CONTENT_TYPES = (ContentType.JSON, ContentType.PROTOBUF)


class HTTPError(Exception):
    """Error reported by the runner group server in an HTTP response."""

    def __init__(self, error_message: str = "") -> None:
        super().__init__(error_message)
        self.error_message = error_message

    def __str__(self) -> str:
        return self.error_message


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    return 0 if value is None else int(value)


def _opt_int(data: dict, key: str) -> Optional[int]:
    value = data.get(key)
    return None if value is None else int(value)


def _str(data: dict, key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass
class KubeGroupVersionResource:
    """Identifies a resource URI by group, version and resource."""

    group: str = ""
    version: str = ""
    resource: str = ""

    def validate(self) -> None:
        if not self.version:
            raise ValueError("version is required")
        if not self.resource:
            raise ValueError("resource is required")

    def _validate_gvr(self) -> None:
        try:
            KubeGroupVersionResource.validate(self)
        except ValueError as err:
            raise ValueError(f"kube metadata: {err}") from err

    def _gvr_dict(self) -> dict:
        return {"group": self.group, "version": self.version, "resource": self.resource}

    @staticmethod
    def _gvr_kwargs(data: dict) -> dict:
        return {
            "group": _str(data, "group"),
            "version": _str(data, "version"),
            "resource": _str(data, "resource"),
        }


@dataclass
class RequestGet(KubeGroupVersionResource):
    """GET request for one object."""

    namespace: str = ""
    name: str = ""

    def validate(self) -> None:
        self._validate_gvr()
        if not self.name:
            raise ValueError("name is required")

    @classmethod
    def _from_dict(cls, data: dict) -> "RequestGet":
        return cls(
            **cls._gvr_kwargs(data),
            namespace=_str(data, "namespace"),
            name=_str(data, "name"),
        )

    def _to_dict(self) -> dict:
        return {**self._gvr_dict(), "namespace": self.namespace, "name": self.name}


@dataclass
class RequestList(KubeGroupVersionResource):
    """LIST request for a set of objects."""

    namespace: str = ""
    limit: int = 0
    selector: str = ""
    field_selector: str = ""

    def validate(self, stale: bool = False) -> None:
        self._validate_gvr()
        if self.limit < 0:
            raise ValueError("limit must >= 0")
        if stale and self.limit != 0:
            raise ValueError("stale list doesn't support pagination option")

    @classmethod
    def _from_dict(cls, data: dict) -> "RequestList":
        return cls(
            **cls._gvr_kwargs(data),
            namespace=_str(data, "namespace"),
            limit=_int(data, "limit"),
            selector=_str(data, "seletor"),
            field_selector=_str(data, "fieldSelector"),
        )

    def _to_dict(self) -> dict:
        return {
            **self._gvr_dict(),
            "namespace": self.namespace,
            "limit": self.limit,
            "seletor": self.selector,
            "fieldSelector": self.field_selector,
        }


@dataclass
class RequestPut(KubeGroupVersionResource):
    """Mutating request for objects with generated names and values."""

    namespace: str = ""
    name: str = ""
    key_space_size: int = 0
    value_size: int = 0

    def validate(self) -> None:
        self._validate_gvr()
        if not self.name:
            raise ValueError("name pattern is required")
        if self.key_space_size <= 0:
            raise ValueError("keySpaceSize must > 0")
        if self.value_size <= 0:
            raise ValueError("valueSize must > 0")

    @classmethod
    def _from_dict(cls, data: dict) -> "RequestPut":
        return cls(
            **cls._gvr_kwargs(data),
            namespace=_str(data, "namespace"),
            name=_str(data, "name"),
            key_space_size=_int(data, "keySpaceSize"),
            value_size=_int(data, "valueSize"),
        )

    def _to_dict(self) -> dict:
        return {
            **self._gvr_dict(),
            "namespace": self.namespace,
            "name": self.name,
            "keySpaceSize": self.key_space_size,
            "valueSize": self.value_size,
        }


@dataclass
class RequestGetPodLog:
    """Request for the log of one pod."""

    namespace: str = ""
    name: str = ""
    container: str = ""
    tail_lines: Optional[int] = None
    limit_bytes: Optional[int] = None

    def validate(self) -> None:
        if not self.namespace:
            raise ValueError("namespace is required")
        if not self.name:
            raise ValueError("name is required")

    @classmethod
    def _from_dict(cls, data: dict) -> "RequestGetPodLog":
        return cls(
            namespace=_str(data, "namespace"),
            name=_str(data, "name"),
            container=_str(data, "container"),
            tail_lines=_opt_int(data, "tailLines"),
            limit_bytes=_opt_int(data, "limitBytes"),
        )

    def _to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "container": self.container,
            "tailLines": self.tail_lines,
            "limitBytes": self.limit_bytes,
        }


_REQUEST_KINDS = (
    ("stale_list", "staleList", RequestList),
    ("quorum_list", "quorumList", RequestList),
    ("stale_get", "staleGet", RequestGet),
    ("quorum_get", "quorumGet", RequestGet),
    ("put", "put", RequestPut),
    ("get_pod_log", "getPodLog", RequestGetPodLog),
)


@dataclass
class WeightedRequest:
    """A request kind with its weight; only one kind may be set."""

    shares: int = 0
    stale_list: Optional[RequestList] = None
    quorum_list: Optional[RequestList] = None
    stale_get: Optional[RequestGet] = None
    quorum_get: Optional[RequestGet] = None
    put: Optional[RequestPut] = None
    get_pod_log: Optional[RequestGetPodLog] = None

    def validate(self) -> None:
        if self.shares < 0:
            raise ValueError(f"shares({self.shares}) requires >= 0")
        if self.stale_list is not None:
            self.stale_list.validate(True)
        elif self.quorum_list is not None:
            self.quorum_list.validate(False)
        elif self.stale_get is not None:
            self.stale_get.validate()
        elif self.quorum_get is not None:
            self.quorum_get.validate()
        elif self.put is not None:
            self.put.validate()
        elif self.get_pod_log is not None:
            self.get_pod_log.validate()
        else:
            raise ValueError("empty request value")

    @classmethod
    def _from_dict(cls, data: dict) -> "WeightedRequest":
        kwargs: dict[str, Any] = {"shares": _int(data, "shares")}
        for attr, key, kind in _REQUEST_KINDS:
            value = data.get(key)
            if value is not None:
                kwargs[attr] = kind._from_dict(_mapping(value, key))
        return cls(**kwargs)

    def _to_dict(self) -> dict:
        out: dict[str, Any] = {"shares": self.shares}
        for attr, key, _ in _REQUEST_KINDS:
            value = getattr(self, attr)
            if value is not None:
                out[key] = value._to_dict()
        return out


@dataclass
class LoadProfileSpec:
    """The load traffic for the target resources."""

    rate: float = 0.0
    total: int = 0
    conns: int = 0
    client: int = 0
    content_type: ContentType = ContentType("")
    disable_http2: bool = False
    max_retries: int = 0
    requests: list[WeightedRequest] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.content_type, ContentType):
            self.content_type = ContentType(self.content_type)

    def validate(self) -> None:
        if self.conns <= 0:
            raise ValueError(f"conns requires > 0: {self.conns}")
        if self.rate < 0:
            raise ValueError(f"rate requires >= 0: {self.rate}")
        if self.total <= 0:
            raise ValueError(f"total requires > 0: {self.total}")
        if self.client <= 0:
            raise ValueError(f"client requires > 0: {self.client}")
        self.content_type.validate()
        for idx, req in enumerate(self.requests):
            try:
                req.validate()
            except ValueError as err:
                raise ValueError(f"idx: {idx} request: {err}") from err

    @classmethod
    def from_dict(cls, data: dict) -> "LoadProfileSpec":
        data = _mapping(data, "spec")
        raw_requests = data.get("requests", data.get("Requests"))
        if raw_requests is None:
            raw_requests = []
        if not isinstance(raw_requests, list):
            raise ValueError("requests must be a list")
        rate = data.get("rate")
        return cls(
            rate=0.0 if rate is None else float(rate),
            total=_int(data, "total"),
            conns=_int(data, "conns"),
            client=_int(data, "client"),
            content_type=ContentType(_str(data, "contentType")),
            disable_http2=bool(data.get("disableHTTP2") or False),
            max_retries=_int(data, "maxRetries"),
            requests=[
                WeightedRequest._from_dict(_mapping(r, "request")) for r in raw_requests
            ],
        )

    def to_dict(self) -> dict:
        return {
            "rate": self.rate,
            "total": self.total,
            "conns": self.conns,
            "client": self.client,
            "contentType": str(self.content_type),
            "disableHTTP2": self.disable_http2,
            "maxRetries": self.max_retries,
            "requests": [r._to_dict() for r in self.requests],
        }


@dataclass
class LoadProfile:
    """How to create load traffic from one host to the API server."""

    version: int = 0
    description: str = ""
    spec: LoadProfileSpec = field(default_factory=LoadProfileSpec)

    def validate(self) -> None:
        if self.version != 1:
            raise ValueError("version should be 1")
        self.spec.validate()

    @classmethod
    def from_dict(cls, data: dict) -> "LoadProfile":
        data = _mapping(data, "load profile")
        return cls(
            version=_int(data, "version"),
            description=_str(data, "description"),
            spec=LoadProfileSpec.from_dict(data.get("spec")),
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "description": self.description,
            "spec": self.spec.to_dict(),
        }


def load_profile_from_yaml(text: str) -> LoadProfile:
    """Parse a load profile from YAML text."""
    data = yaml.safe_load(text)
    return LoadProfile.from_dict(_mapping(data, "load profile"))