"""Settings of the runner group server deployment and the values they render to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import yaml

from kperf.stats import RunnerGroupSpec
from kperf.values import ValuesApplier, yaml_values_applier

# Chart of the runner group server.
RUNNER_GROUP_SERVER_CHART_NAME = "runnergroup/server"
# Helm release name of the runner group server.
RUNNER_GROUP_SERVER_RELEASE_NAME = "runnergroup-server"
# TCP port the runner group server listens on inside its pod.
RUNNER_GROUP_SERVER_PORT = 8080
# Namespace that hosts the runner groups.
RUNNER_GROUP_RELEASE_NAMESPACE = "runnergroups-kperf-io"
# Labels marking releases managed by this tool.
RUNNER_GROUP_RELEASE_LABELS = {"runnergroups.kperf.io/managed": "true"}


@dataclass
class RunCmdConfig:
    """Settings of the run command.

    server_node_selectors places the server on nodes carrying those labels;
    priority_level and matching_precedence are the flow control applied to
    the runners.
    """

    server_node_selectors: Optional[dict[str, list[str]]] = None
    priority_level: str = "workload-low"
    matching_precedence: int = 1000

    def to_server_helm_values_applier(self) -> ValuesApplier:
        """Return an applier that writes these settings into the server chart values."""
        values = {
            "nodeSelectors": self.server_node_selectors,
            "flowcontrol": {
                "priorityLevelConfiguration": self.priority_level,
                "matchingPrecedence": self.matching_precedence,
            },
        }
        try:
            raw = yaml.safe_dump(values, default_flow_style=False)
        except yaml.YAMLError as err:
            raise ValueError(
                f"failed to render run command config into YAML: {err}"
            ) from err
        try:
            return yaml_values_applier(raw)
        except (yaml.YAMLError, ValueError) as err:
            raise ValueError(
                f"failed to prepare value applier for run command config: {err}"
            ) from err


def tweak_and_marshal_spec(spec: RunnerGroupSpec) -> str:
    """Default the spec's service account to the server's and render it as YAML."""
    if spec.service_account is None:
        spec.service_account = RUNNER_GROUP_SERVER_RELEASE_NAME
    try:
        return yaml.safe_dump(spec.to_dict(), default_flow_style=False)
    except yaml.YAMLError as err:
        raise ValueError(f"failed to marshal spec: {err}") from err