import pytest

from kperf.loadprofile import (
    ContentType,
    HTTPError,
    KubeGroupVersionResource,
    LoadProfile,
    LoadProfileSpec,
    RequestGet,
    RequestGetPodLog,
    RequestList,
    RequestPut,
    WeightedRequest,
    load_profile_from_yaml,
)

PROFILE_YAML = """
version: 1
description: test
spec:
  rate: 100
  total: 10000
  conns: 2
  client: 1
  contentType: json
  requests:
  - staleGet:
      group: core
      version: v1
      resource: pods
      namespace: default
      name: x1
    shares: 100
  - quorumGet:
      group: core
      version: v1
      resource: configmaps
      namespace: default
      name: x2
    shares: 150
  - staleList:
      group: core
      version: v1
      resource: pods
      namespace: default
      seletor: app=x2
      fieldSelector: spec.nodeName=x
    shares: 200
  - quorumList:
      group: core
      version: v1
      resource: configmaps
      namespace: default
      limit: 10000
      seletor: app=x3
    shares: 400
  - put:
      group: core
      version: v1
      resource: configmaps
      namespace: kperf
      name: kperf-
      keySpaceSize: 1000
      valueSize: 1024
    shares: 1000
  - getPodLog:
      namespace: default
      name: hello
      container: main
      tailLines: 1000
      limitBytes: 1024
    shares: 10
"""


def test_load_profile_unmarshal_from_yaml():
    target = load_profile_from_yaml(PROFILE_YAML)
    assert target.version == 1
    assert target.description == "test"
    assert target.spec.rate == 100.0
    assert target.spec.total == 10000
    assert target.spec.conns == 2
    assert len(target.spec.requests) == 6

    reqs = target.spec.requests
    assert reqs[0].shares == 100
    assert reqs[0].stale_get is not None
    assert reqs[0].stale_get.resource == "pods"
    assert reqs[0].stale_get.version == "v1"
    assert reqs[0].stale_get.group == "core"
    assert reqs[0].stale_get.namespace == "default"
    assert reqs[0].stale_get.name == "x1"

    assert reqs[1].quorum_get is not None
    assert reqs[1].shares == 150

    assert reqs[2].shares == 200
    assert reqs[2].stale_list is not None
    assert reqs[2].stale_list.resource == "pods"
    assert reqs[2].stale_list.version == "v1"
    assert reqs[2].stale_list.namespace == "default"
    assert reqs[2].stale_list.limit == 0
    assert reqs[2].stale_list.selector == "app=x2"
    assert reqs[2].stale_list.field_selector == "spec.nodeName=x"

    assert reqs[3].quorum_list is not None
    assert reqs[3].shares == 400

    assert reqs[4].shares == 1000
    assert reqs[4].put is not None
    assert reqs[4].put.resource == "configmaps"
    assert reqs[4].put.version == "v1"
    assert reqs[4].put.namespace == "kperf"
    assert reqs[4].put.name == "kperf-"
    assert reqs[4].put.key_space_size == 1000
    assert reqs[4].put.value_size == 1024

    assert reqs[5].shares == 10
    assert reqs[5].get_pod_log is not None
    assert reqs[5].get_pod_log.namespace == "default"
    assert reqs[5].get_pod_log.name == "hello"
    assert reqs[5].get_pod_log.container == "main"
    assert reqs[5].get_pod_log.tail_lines == 1000
    assert reqs[5].get_pod_log.limit_bytes == 1024

    assert target.validate() is None


@pytest.mark.parametrize(
    "req, has_err",
    [
        (WeightedRequest(shares=-1), True),
        (WeightedRequest(shares=10), True),
        (WeightedRequest(shares=10, stale_get=RequestGet(resource="pods")), True),
        (
            WeightedRequest(shares=10, stale_get=RequestGet(group="core", version="v1")),
            True,
        ),
        (
            WeightedRequest(
                shares=10,
                stale_list=RequestList(
                    group="core", version="v1", resource="pods", limit=-1
                ),
            ),
            True,
        ),
        (
            WeightedRequest(
                shares=10,
                stale_get=RequestGet(
                    group="core",
                    version="v1",
                    resource="pods",
                    namespace="default",
                    name="testing",
                ),
            ),
            False,
        ),
    ],
    ids=[
        "shares < 0",
        "no request setting",
        "empty version",
        "empty resource",
        "wrong limit",
        "no error",
    ],
)
def test_weighted_request(req, has_err):
    if has_err:
        with pytest.raises(ValueError):
            req.validate()
    else:
        assert req.validate() is None


def test_weighted_request_messages():
    with pytest.raises(ValueError, match="empty request value"):
        WeightedRequest(shares=1).validate()
    with pytest.raises(ValueError, match=r"shares\(-1\) requires >= 0"):
        WeightedRequest(shares=-1).validate()
    with pytest.raises(ValueError, match="kube metadata: version is required"):
        WeightedRequest(shares=1, quorum_get=RequestGet(resource="pods", name="a")).validate()


def test_stale_list_rejects_pagination_but_quorum_accepts():
    lst = RequestList(group="core", version="v1", resource="pods", limit=10)
    with pytest.raises(ValueError, match="pagination"):
        lst.validate(True)
    assert lst.validate(False) is None


def test_request_put_validation():
    base = dict(version="v1", resource="configmaps", name="p-", key_space_size=1, value_size=1)
    assert RequestPut(**base).validate() is None
    with pytest.raises(ValueError, match="name pattern is required"):
        RequestPut(**{**base, "name": ""}).validate()
    with pytest.raises(ValueError, match="keySpaceSize must > 0"):
        RequestPut(**{**base, "key_space_size": 0}).validate()
    with pytest.raises(ValueError, match="valueSize must > 0"):
        RequestPut(**{**base, "value_size": 0}).validate()


def test_request_get_pod_log_validation():
    assert RequestGetPodLog(namespace="default", name="hello").validate() is None
    with pytest.raises(ValueError, match="namespace is required"):
        RequestGetPodLog(name="hello").validate()
    with pytest.raises(ValueError, match="name is required"):
        RequestGetPodLog(namespace="default").validate()


def test_kube_group_version_resource_validation():
    with pytest.raises(ValueError, match="version is required"):
        KubeGroupVersionResource(resource="pods").validate()
    with pytest.raises(ValueError, match="resource is required"):
        KubeGroupVersionResource(version="v1").validate()


def test_content_type_validate():
    assert ContentType.JSON == "json"
    assert ContentType.PROTOBUF == "protobuf"
    assert ContentType("protobuf").validate() is None
    with pytest.raises(ValueError, match="unsupported content type yaml"):
        ContentType("yaml").validate()


def _spec(**overrides):
    values = dict(total=1, conns=1, client=1, content_type="json")
    values.update(overrides)
    return LoadProfileSpec(**values)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"conns": 0}, "conns requires > 0"),
        ({"rate": -1.0}, "rate requires >= 0"),
        ({"total": 0}, "total requires > 0"),
        ({"client": 0}, "client requires > 0"),
        ({"content_type": "xml"}, "unsupported content type xml"),
        ({"requests": [WeightedRequest(shares=1)]}, "idx: 0 request: empty request value"),
    ],
)
def test_spec_validation_errors(overrides, message):
    with pytest.raises(ValueError, match=message):
        _spec(**overrides).validate()


def test_spec_converts_plain_content_type():
    spec = _spec(content_type="protobuf")
    assert isinstance(spec.content_type, ContentType)
    assert spec.validate() is None


def test_load_profile_version_must_be_one():
    profile = LoadProfile(version=2, spec=_spec())
    with pytest.raises(ValueError, match="version should be 1"):
        profile.validate()


def test_round_trip_through_dict():
    profile = load_profile_from_yaml(PROFILE_YAML)
    again = LoadProfile.from_dict(profile.to_dict())
    assert again == profile


def test_to_dict_keys_follow_format():
    data = load_profile_from_yaml(PROFILE_YAML).to_dict()
    assert data["spec"]["contentType"] == "json"
    assert data["spec"]["requests"][2]["staleList"]["seletor"] == "app=x2"
    assert set(data["spec"]["requests"][0]) == {"shares", "staleGet"}


def test_capitalised_requests_key_is_accepted():
    spec = LoadProfileSpec.from_dict(
        {"total": 1, "Requests": [{"shares": 3, "getPodLog": {"namespace": "ns", "name": "p"}}]}
    )
    assert spec.requests[0].shares == 3
    assert spec.requests[0].get_pod_log.name == "p"
    assert spec.requests[0].get_pod_log.tail_lines is None


def test_empty_yaml_gives_default_profile():
    profile = load_profile_from_yaml("")
    assert profile == LoadProfile()
    with pytest.raises(ValueError):
        profile.validate()


def test_non_mapping_yaml_rejected():
    with pytest.raises(ValueError, match="mapping"):
        load_profile_from_yaml("- 1\n- 2\n")


def test_http_error_message():
    err = HTTPError("summary is not ready")
    assert str(err) == "summary is not ready"
    assert err.error_message == "summary is not ready"
    with pytest.raises(HTTPError):
        raise err