"""Load runner group specs from files or config maps."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Union
from urllib.parse import parse_qs, urlsplit

import yaml

from kperf.stats import RunnerGroupSpec

ConfigMapGetter = Callable[[str, str], dict]


class SpecURIType(str, Enum):
    """Scheme of a runner group spec URI."""

    FILE = "file"
    CONFIGMAP = "configmap"


def parse_runner_group_spec(data: Union[bytes, str]) -> RunnerGroupSpec:
    """Parse a runner group spec from YAML."""
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    try:
        doc = yaml.safe_load(text)
        return RunnerGroupSpec.from_dict(doc)
    except (yaml.YAMLError, ValueError, TypeError, AttributeError) as err:
        raise ValueError(
            f"failed to parse RunnerGroupSpec from YAML: {text}\nerror: {err}"
        ) from err


def _from_file(path: str) -> RunnerGroupSpec:
    try:
        with open(path, "rb") as fobj:
            data = fobj.read()
    except OSError as err:
        raise type(err)(f"failed to read runner group spec from {path}: {err}") from err
    return parse_runner_group_spec(data)


def runner_group_spec_from_uri(
    spec_uri: str, get_configmap: Optional[ConfigMapGetter] = None
) -> RunnerGroupSpec:
    """Load a spec from file:///path or configmap://name?namespace=..&specName=..

    get_configmap(namespace, name) returns the config map's data mapping.
    """
    try:
        parts = urlsplit(spec_uri)
    except ValueError as err:
        raise ValueError(f"invalid runner group uri {spec_uri}: {err}") from err

    if parts.scheme == SpecURIType.FILE.value:
        return _from_file(parts.path)
    if parts.scheme == SpecURIType.CONFIGMAP.value:
        query = parse_qs(parts.query)
        namespace = (query.get("namespace") or [""])[0] or "default"
        spec_name = (query.get("specName") or [""])[0] or "spec"
        name = parts.netloc
        if get_configmap is None:
            raise ValueError("no config map source available")
        try:
            data = get_configmap(namespace, name)
        except Exception as err:
            raise ValueError(
                f"failed to load configmap {name} from namespace {namespace}: {err}"
            ) from err
        if spec_name not in (data or {}):
            raise KeyError(
                f"no such data ({spec_name}) in configmap {name} from namespace {namespace}"
            )
        return parse_runner_group_spec(data[spec_name])
    raise ValueError(f"unsupported RunnerGroupSpec's URI scheme: {parts.scheme}")