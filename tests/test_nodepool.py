import pytest
import yaml

from kperf.nodepool import RESERVED_NODEPOOL_SUFFIX, NodepoolConfig


def _apply(appliers):
    values = {}
    for applier in appliers:
        applier(values)
    return values


def test_defaults_validate():
    cfg = NodepoolConfig(name="pool")
    cfg.validate()
    assert (cfg.count, cfg.cpu, cfg.memory, cfg.max_pods) == (10, 8, 16, 110)


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"count": 0}, "invalid count"),
        ({"cpu": -1}, "invalid count"),
        ({"memory": 0}, "invalid count"),
        ({"max_pods": 0}, "required max pods > 0"),
        ({"name": ""}, "required non-empty name"),
        ({"name": "pool-controller"}, "as suffix"),
    ],
)
def test_validate_errors(changes, message):
    settings = {"name": "pool", **changes}
    cfg = NodepoolConfig(**settings)
    with pytest.raises(ValueError, match=message):
        cfg.validate()


def test_release_names():
    cfg = NodepoolConfig(name="pool")
    assert cfg.node_helm_release_name() == "pool"
    assert cfg.node_controller_helm_release_name() == "pool" + RESERVED_NODEPOOL_SUFFIX


def test_render_node_labels_round_trip():
    labels = {"zone": "a", "team": "perf"}
    cfg = NodepoolConfig(name="pool", labels=labels)
    assert yaml.safe_load(cfg.render_node_labels()) == {"nodeLabels": labels}


def test_render_node_labels_unset_is_null():
    cfg = NodepoolConfig(name="pool")
    assert yaml.safe_load(cfg.render_node_labels()) == {"nodeLabels": None}


def test_node_values():
    cfg = NodepoolConfig(name="pool", labels={"zone": "a"}, shared_provider_id="pid")
    values = _apply(cfg.to_node_helm_values_appliers())
    assert values == {
        "name": "pool",
        "cpu": 8,
        "memory": 16,
        "replicas": 10,
        "maxPods": 110,
        "sharedProviderID": "pid",
        "nodeLabels": {"zone": "a"},
    }


def test_node_values_empty_provider_id():
    cfg = NodepoolConfig(name="pool")
    values = _apply(cfg.to_node_helm_values_appliers())
    assert values["sharedProviderID"] == ""
    assert values["nodeLabels"] is None


def test_node_controller_values():
    selectors = {"agentpool": ["one", "two"]}
    cfg = NodepoolConfig(name="pool", count=3, node_selectors=selectors)
    values = _apply(cfg.to_node_controller_helm_values_appliers())
    assert values == {"name": "pool", "replicas": 3, "nodeSelectors": selectors}


def test_render_node_selectors_round_trip():
    selectors = {"k": ["v1", "v2"]}
    cfg = NodepoolConfig(name="pool", node_selectors=selectors)
    assert yaml.safe_load(cfg.render_node_controller_node_selectors()) == {
        "nodeSelectors": selectors
    }