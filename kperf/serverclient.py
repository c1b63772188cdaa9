"""Client for the runner group server's endpoints."""

from __future__ import annotations

import json
from typing import Optional

import httpx

from kperf.loadprofile import HTTPError
from kperf.stats import RunnerGroup, RunnerMetricReport


def _fetch(url: str, timeout: Optional[float]) -> bytes:
    try:
        resp = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as err:
        raise ConnectionError(f"failed to access {url}: {err}") from err

    if resp.status_code != 200:
        status = f"{resp.status_code} {resp.reason_phrase}"
        try:
            doc = json.loads(resp.content)
        except ValueError as err:
            raise ValueError(f"failed to get error when http code = {status}: {err}") from err
        if not isinstance(doc, dict):
            raise ValueError(
                f"failed to get error when http code = {status}: not an error object"
            )
        raise HTTPError(str(doc.get("error") or ""))
    return resp.content


def list_runner_groups(host: str) -> list[RunnerGroup]:
    """List the runner groups known to the server at host (host:port)."""
    data = _fetch(f"http://{host}/v1/runnergroups", None)
    try:
        doc = json.loads(data)
        if doc is None:
            return []
        if not isinstance(doc, list):
            raise ValueError("not a list")
        return [RunnerGroup.from_dict(item) for item in doc]
    except (ValueError, TypeError, AttributeError, KeyError) as err:
        raise ValueError(
            f"failed to unmarshal to get RunnerGroup slice: {err}\n\n"
            f"{data.decode('utf-8', 'replace')}"
        ) from err


def get_runner_group_result(
    host: str, wait: bool = True, timeout: Optional[float] = None
) -> RunnerMetricReport:
    """Fetch the aggregated report; with wait, block until it is ready.

    timeout (seconds) only applies when waiting.
    """
    url = f"http://{host}/v1/runnergroups/summary"
    if wait:
        url += "?wait=true"
    limit = timeout if wait and timeout and timeout > 0 else None
    data = _fetch(url, limit)
    try:
        return RunnerMetricReport.from_dict(json.loads(data))
    except (ValueError, TypeError, AttributeError, KeyError) as err:
        raise ValueError(
            f"failed to unmarshal to get result: {err}\n\n"
            f"{data.decode('utf-8', 'replace')}"
        ) from err