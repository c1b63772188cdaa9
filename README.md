# kperf

kperf is a library of building blocks for benchmarking a Kubernetes API
server. It parses and validates load profiles, collects response metrics
and classifies failures, builds latency percentiles and reports, describes
runner groups, renders chart values for runner group servers and virtual
node pools, and talks to a running runner group server over HTTP.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Load profiles

`kperf.loadprofile` reads a load profile from YAML:

```yaml
version: 1
description: example
spec:
  rate: 100          # requests per second, 0 means no limit
  total: 10000       # total number of requests
  conns: 2           # number of connections
  client: 4          # number of HTTP clients
  contentType: json  # json or protobuf
  requests:
  - staleGet:
      group: core
      version: v1
      resource: pods
      namespace: default
      name: x1
    shares: 100
  - quorumList:
      group: core
      version: v1
      resource: configmaps
      namespace: default
      limit: 10000
    shares: 400
  - getPodLog:
      namespace: default
      name: hello
      container: main
      tailLines: 1000
    shares: 10
```

```python
from kperf.loadprofile import load_profile_from_yaml

with open("profile.yaml") as fh:
    profile = load_profile_from_yaml(fh.read())

profile.validate()          # raises ValueError on a bad profile
print(profile.spec.total, len(profile.spec.requests))
```

`LoadProfile`, `LoadProfileSpec` and `WeightedRequest` are dataclasses;
the request kinds are `RequestGet` (`staleGet`, `quorumGet`),
`RequestList` (`staleList`, `quorumList`), `RequestPut` (`put`) and
`RequestGetPodLog` (`getPodLog`). Each has `validate()`; a stale list may
not set `limit`, and a weighted request must set exactly one kind.
`LoadProfile.from_dict` / `to_dict` convert to and from plain mappings.
`ContentType.JSON` and `ContentType.PROTOBUF` are the supported content
types. `HTTPError` is the error a runner group server reports.

## Response metrics

`kperf.metrics.ResponseMetric` is a thread-safe collector:

```python
from kperf.metrics import ResponseMetric, StatusError, build_percentile_latencies

m = ResponseMetric()
m.observe_latency("/api/v1/pods", 0.12)
m.observe_received_bytes(2048)
m.observe_failure(StatusError(429, "TooManyRequests", "slow down"))

stats = m.gather()
print(stats.error_stats.response_codes)   # {429: 1}
print(build_percentile_latencies([0.1, 0.2, 0.3, 0.4]))
```

Failures are classified, in this order, as API status codes
(`StatusError`), HTTP/2 errors (`HTTP2ConnectionError`,
`HTTP2StreamError`, `HTTP2GoAwayError`, or "http2: client connection
lost"), network errors (timeouts, connection refused or reset,
`UnexpectedEOFError`, TLS handshake timeout) and unknown errors.
`build_percentile_latencies` returns `(percentile, latency)` pairs for
the 0, 50, 90, 95, 99 and 100 percentiles.

## Reports and runner groups

`kperf.stats` holds `ResponseErrorStats` (with `copy`, `merge`,
`to_dict`, `from_dict`), `ResponseStats`, `RunnerMetricReport`, and the
runner group types `RunnerGroup`, `RunnerGroupSpec`, `RunnerGroupStatus`
and `RunnerGroupStatusState`, all convertible to and from the JSON shapes
the runner group server uses.

`kperf.groupspec.runner_group_spec_from_uri` loads a `RunnerGroupSpec`
from `file:///path/to/spec.yaml` or from
`configmap://NAME?namespace=NS&specName=KEY`; for config maps the caller
passes `get_configmap(namespace, name)` returning the map's data.
`parse_runner_group_spec` parses YAML directly.

`kperf.serverclient` queries a reachable runner group server given its
`host:port`:

```python
from kperf.serverclient import list_runner_groups, get_runner_group_result

groups = list_runner_groups("localhost:8080")
report = get_runner_group_result("localhost:8080", wait=True, timeout=3600)
```

## Chart values

`kperf.values` merges and edits chart values: `apply_values` merges one
mapping into another, `copy_values` deep-copies through JSON,
`parse_into("a.b=1,c={x,y}", values)` assigns string paths, and
`string_path_values_applier` / `yaml_values_applier` return callables
that apply values to a mapping.

`kperf.nodepool.NodepoolConfig` describes a virtual node pool (defaults:
10 nodes, 8 CPUs, 16 GiB, 110 pods per node), validates it, names its
node and controller releases, and returns the value appliers for both
charts. `kperf.runcfg.RunCmdConfig` renders the runner group server's
node selectors and flow control into a value applier, and
`tweak_and_marshal_spec` defaults a spec's service account and renders
it as YAML.

`kperf.cliutils` parses `KEY=VALUE[,VALUE]` and `KEY=VALUE` lists and
`PriorityLevel:MatchingPrecedence` strings, and finds the default
kubeconfig path.

## What this package does not do

- It has no command-line program.
- It does not send load to an API server: there is no kubeconfig-based
  HTTP client, rate limiter or request scheduler here.
- It does not run a runner group server, deploy charts or node pools, or
  store runner reports on disk; it only prepares values for such
  deployments and reads from a server that is already running.