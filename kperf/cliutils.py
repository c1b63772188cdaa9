"""Helpers for command-line flags and kubeconfig discovery."""

from __future__ import annotations

import os
import re

_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"
_INT_RE = re.compile(r"[+-]?[0-9]+")


def key_values_map(strs: list[str]) -> dict[str, list[str]]:
    """Convert key=value[,value] strings into a mapping of lists."""
    result: dict[str, list[str]] = {}
    for item in strs:
        key, sep, values = item.partition("=")
        if not sep:
            raise ValueError(f"expected key=value[,value] format, but got {item}")
        result[key] = values.split(",")
    return result


def key_value_map(strs: list[str]) -> dict[str, str]:
    """Convert key=value strings into a mapping."""
    result: dict[str, str] = {}
    for item in strs:
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"expected key=value format, but got {item}")
        result[key] = value
    return result


def parse_flow_control(value: str) -> tuple[str, int]:
    """Parse PriorityLevel:MatchingPrecedence."""
    level, sep, precedence = value.partition(":")
    if not sep or not level or not precedence:
        raise ValueError(
            f"expected PriorityLevel:MatchingPrecedence format, but got {value}"
        )
    if not _INT_RE.fullmatch(precedence):
        raise ValueError(
            f"failed to parse matchingPrecedence into int: invalid syntax {precedence!r}"
        )
    return level, int(precedence)


def in_cluster() -> bool:
    """Return True if the current process runs inside a pod."""
    if not os.path.isfile(_TOKEN_PATH):
        return False
    return bool(os.environ.get("KUBERNETES_SERVICE_HOST")) and bool(
        os.environ.get("KUBERNETES_SERVICE_PORT")
    )


def default_kubeconfig_path() -> str:
    """Return ~/.kube/config outside a cluster when a home dir exists, else ''."""
    if in_cluster():
        return ""
    home = os.path.expanduser("~")
    if not home or home == "~":
        return ""
    return os.path.join(home, ".kube", "config")