# sonoscope

A library of helpers for running Kubernetes conformance checks and for taking
diagnostic snapshots of a cluster. It covers:

- **Conformance image versions.** It parses and validates versions such as
  `v1.14.1`. When the version is set to `auto`, it can ask a client for the
  server's version instead.
- **End-to-end image manifests.** It lists the images the conformance suite
  needs for Kubernetes 1.13, 1.14 and 1.15. A YAML file can override the
  registries.
- **Image handling.** It pulls, tags, pushes, saves and deletes those images
  with the local `docker` command. A failing command is retried after a
  pause that grows by one second with each attempt.
- **Run status tracking.** It combines the states of the plugins into one
  overall status: `running`, `post-processing` or `failed`. It also builds the
  merge patch that writes that status into the pod annotation.
- **Cluster snapshots.** It records how long each query took, writes objects
  out as JSON, filters namespaces and API resources, and saves pod logs into a
  directory tree.

## Requirements

- Python 3.10 or newer.
- PyYAML, which is installed as a dependency.
- A `docker` binary on `PATH`. You only need it for the image handling
  features.

## Conformance image versions

```python
from sonoscope.imageversion import ConformanceImageVersion

version = ConformanceImageVersion.parse("v1.13")
print(version)  # v1.13.0
```

`ConformanceImageVersion.parse` accepts three kinds of value:

| Value | Result |
| --- | --- |
| `auto` | Kept as is. |
| `latest` | Kept as is. |
| A version string | Normalised to three segments with a leading `v`. |

Any other value raises `ValueError`. That includes a stable version without
its leading `v`, such as `1.13.0`.

Prerelease and build-metadata versions are accepted, and a warning is logged
for them.

`ConformanceImageVersion.get(client)` returns the stored value. For `auto` it
calls `client.server_version()` and takes its `git_version` instead. How much
of that version it returns depends on the version:

- Releases before 1.14 come back as `vMAJOR.MINOR`.
- Later releases come back as `vMAJOR.MINOR.PATCH`.

If the value is `auto` and no client is given, `get` raises
`ImageVersionNoClientError`.

`validate_version` and `Version.parse` are also available on their own.

## Conformance image lists

```python
from sonoscope.registry import RegistryList

registry = RegistryList.load(None, "v1.15.0")
for key, config in sorted(registry.image_configs().items()):
    print(key, config.e2e_image())
```

`RegistryList.load` takes an optional path to a YAML file. That file can set
any of these keys:

- `dockerLibraryRegistry`
- `e2eRegistry`
- `etcdRegistry`
- `gcRegistry`
- `privateRegistry`
- `sampleRegistry`

Keys it does not recognise are ignored.

`image_configs` returns a map from image key to `ImageConfig`. For a
Kubernetes version other than 1.13, 1.14 or 1.15 it raises `ValueError`.

`sonoscope.images.get_images(config_path, version)` loads the registry list
and returns the image map in one step.

### `ImageClient`

`sonoscope.images.ImageClient` drives a docker client, which is
`LocalDocker` by default.

- `pull_images`, `push_images` and `delete_images` each return a list of the
  errors they ran into. One failing image does not stop the rest.
- `push_images` tags each upstream image with its private name and pushes
  it. It skips an image whose source and target are the same.
- `download_images` saves the images to the archive named by
  `tar_file_name(version)` and returns that name. If saving fails, it raises.

The lower-level command helpers are in two modules:

- `sonoscope.docker.LocalDocker`.
- `sonoscope.runner`, which provides `command`, `combined_output_lines`,
  `inherit_output` and `run_logging_output_on_fail`.

## Run status

```python
from sonoscope.status import PluginStatus, Status

status = Status(plugins=[PluginStatus(plugin="e2e", node="", status="running")])
status.update_status()
print(status.status)  # running
```

`Status.update_status` works out the overall status from the plugin states:

- Any failed plugin makes the run `failed`.
- Otherwise, any running plugin makes it `running`.
- Otherwise, the run is `post-processing`.

A plugin state it does not know raises `ValueError`.

`Status.to_dict` and `Status.from_dict` convert to and from the JSON form.

`get_status(client, namespace)` reads the status from the annotation on the
`sonobuoy` pod. It needs a client that provides `read_namespace` and
`read_pod`.

`sonoscope.update.Updater` keeps the status of each expected plugin result.

- `receive` and `receive_all` record incoming results. A result that carries
  an error counts as failed.
- `serialize` encodes the status as compact JSON.
- `annotate` applies the status to the pod through `client.patch_pod`.

`get_patch` wraps a serialized status in a merge patch for the status
annotation.

## Snapshot helpers

- **`sonoscope.queryrecorder.QueryRecorder`** records the name, namespace,
  elapsed time and error of each query. The time is stored as text such as
  `1.5s` or `2ms`. `dump_query_data` writes the records out as JSON.
- **`sonoscope.serialize.serialize_obj`** writes any JSON-serializable object
  to a file, and creates the directory if needed.
- **`sonoscope.serialize.filter_namespaces`** returns the namespace names
  that match a regular expression.
- **`sonoscope.queries`** chooses which API resources to query from
  discovery data.
  - `get_resources`, `filter_resources` and `get_all_filtered_resources`
    make that choice. Only resources that can be listed are chosen. Secrets
    are left out unless the list of wanted resources names them.
  - `query_resources` saves each resource's items under
    `resources/cluster/` or `resources/ns/<namespace>/`.
  - `query_server_data` saves the server version and API groups.
- **`sonoscope.pods.gather_pod_logs`** writes the log of each container to
  `podlogs/<namespace>/<pod>/logs/<container>.txt`. Evicted pods are skipped.

All of these helpers take client objects that you supply. The docstrings list
the methods each one calls.

## What this package does not do

sonoscope has no command-line tool. It does not connect to a Kubernetes
cluster by itself: you provide the client objects.

It does not run the aggregation server that receives plugin results. It does
not launch or monitor plugins.

It does not collect node `configz` or `healthz` data, and it does not pack a
snapshot into a tarball. Those steps are left to the caller.

## Running the tests

Install the `test` extra and run `pytest` from the project root.