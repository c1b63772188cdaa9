"""Virtual node pool settings and the chart values they render to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import yaml

from kperf.values import ValuesApplier, string_path_values_applier, yaml_values_applier

# Chart holding the virtual nodes.
VIRTUALNODE_CHART_NAME = "virtualcluster/nodes"
# Chart holding the controllers of the virtual nodes.
VIRTUALNODE_CONTROLLER_CHART_NAME = "virtualcluster/nodecontrollers"
# Namespace that hosts every resource related to virtual nodes.
VIRTUALNODE_RELEASE_NAMESPACE = "virtualnodes-kperf-io"
# Suffix reserved for the controller release of a node pool.
RESERVED_NODEPOOL_SUFFIX = "-controller"
# Labels marking releases managed by this tool.
VIRTUALNODE_RELEASE_LABELS = {"virtualnodes.kperf.io/managed": "true"}


@dataclass
class NodepoolConfig:
    """Settings of one virtual node pool.

    memory is in GiB. shared_provider_id forces every virtual node to use
    one provider ID. node_selectors places the node controllers on nodes
    carrying those labels.
    """

    name: str = ""
    count: int = 10
    cpu: int = 8
    memory: int = 16
    max_pods: int = 110
    labels: Optional[dict[str, str]] = None
    shared_provider_id: str = ""
    node_selectors: Optional[dict[str, list[str]]] = None

    def validate(self) -> None:
        """Raise ValueError if the settings cannot describe a node pool."""
        if self.count <= 0 or self.cpu <= 0 or self.memory <= 0:
            raise ValueError(
                f"invalid count={self.count} or cpu={self.cpu} or memory={self.memory}"
            )
        if self.max_pods <= 0:
            raise ValueError(f"required max pods > 0, but got {self.max_pods}")
        if not self.name:
            raise ValueError("required non-empty name")
        if self.name.endswith(RESERVED_NODEPOOL_SUFFIX):
            raise ValueError(f"name can't contain {RESERVED_NODEPOOL_SUFFIX} as suffix")

    def node_helm_release_name(self) -> str:
        return self.name

    def node_controller_helm_release_name(self) -> str:
        return self.name + RESERVED_NODEPOOL_SUFFIX

    def render_node_labels(self) -> str:
        """Render the node labels as a YAML values document."""
        return yaml.safe_dump({"nodeLabels": self.labels}, default_flow_style=False)

    def to_node_helm_values_appliers(self) -> list[ValuesApplier]:
        """Return the appliers that turn these settings into node chart values."""
        paths = [
            f"name={self.name}",
            f"cpu={self.cpu}",
            f"memory={self.memory}",
            f"replicas={self.count}",
            f"maxPods={self.max_pods}",
            f"sharedProviderID={self.shared_provider_id}",
        ]
        return [
            string_path_values_applier(*paths),
            yaml_values_applier(self.render_node_labels()),
        ]

    def render_node_controller_node_selectors(self) -> str:
        """Render the controllers' node selectors as a YAML values document."""
        return yaml.safe_dump(
            {"nodeSelectors": self.node_selectors}, default_flow_style=False
        )

    def to_node_controller_helm_values_appliers(self) -> list[ValuesApplier]:
        """Return the appliers that turn these settings into controller chart values."""
        paths = [f"name={self.name}", f"replicas={self.count}"]
        return [
            string_path_values_applier(*paths),
            yaml_values_applier(self.render_node_controller_node_selectors()),
        ]