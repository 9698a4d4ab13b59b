"""Registries and end-to-end test images for supported Kubernetes versions."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from sonoscope.imageversion import Version, validate_version

# Keys accepted in a registry configuration file, mapped to RegistryList fields.
_CONFIG_KEYS = {
    "dockerLibraryRegistry": "docker_library_registry",
    "e2eRegistry": "e2e_registry",
    "etcdRegistry": "etcd_registry",
    "gcRegistry": "gc_registry",
    "privateRegistry": "private_registry",
    "sampleRegistry": "sample_registry",
}


@dataclass(frozen=True)
class ImageConfig:
    """An image's registry, name and version."""

    registry: str
    name: str
    version: str

    def e2e_image(self):
        """Return the fully qualified image reference, including its version."""
        return f"{self.registry}/{self.name}:{self.version}"


# Each entry: image key, RegistryList field holding its registry, name, version.
_V1_13 = (
    ("CRDConversionWebhook", "e2e_registry", "crd-conversion-webhook", "1.13rev2"),
    ("AdmissionWebhook", "e2e_registry", "webhook", "1.14v1"),
    ("APIServer", "e2e_registry", "sample-apiserver", "1.10"),
    ("AppArmorLoader", "e2e_registry", "apparmor-loader", "1.0"),
    ("AuditProxy", "e2e_registry", "audit-proxy", "1.0"),
    ("BusyBox", "docker_library_registry", "busybox", "1.29"),
    ("CheckMetadataConcealment", "e2e_registry", "metadata-concealment", "1.2"),
    ("CudaVectorAdd", "e2e_registry", "cuda-vector-add", "1.0"),
    ("CudaVectorAdd2", "e2e_registry", "cuda-vector-add", "2.0"),
    ("Dnsutils", "e2e_registry", "dnsutils", "1.1"),
    ("EchoServer", "e2e_registry", "echoserver", "2.2"),
    ("EntrypointTester", "e2e_registry", "entrypoint-tester", "1.0"),
    ("Etcd", "etcd_registry", "etcd", "v3.3.10"),
    ("Fakegitserver", "e2e_registry", "fakegitserver", "1.0"),
    ("GBFrontend", "sample_registry", "gb-frontend", "v6"),
    ("GBRedisSlave", "sample_registry", "gb-redisslave", "v3"),
    ("Hostexec", "e2e_registry", "hostexec", "1.1"),
    ("IpcUtils", "e2e_registry", "ipc-utils", "1.0"),
    ("Iperf", "e2e_registry", "iperf", "1.0"),
    ("JessieDnsutils", "e2e_registry", "jessie-dnsutils", "1.0"),
    ("Kitten", "e2e_registry", "kitten", "1.0"),
    ("Liveness", "e2e_registry", "liveness", "1.0"),
    ("LogsGenerator", "e2e_registry", "logs-generator", "1.0"),
    ("Mounttest", "e2e_registry", "mounttest", "1.0"),
    ("MounttestUser", "e2e_registry", "mounttest-user", "1.0"),
    ("Nautilus", "e2e_registry", "nautilus", "1.0"),
    ("Net", "e2e_registry", "net", "1.0"),
    ("Netexec", "e2e_registry", "netexec", "1.1"),
    ("Nettest", "e2e_registry", "nettest", "1.0"),
    ("Nginx", "docker_library_registry", "nginx", "1.14-alpine"),
    ("NginxNew", "docker_library_registry", "nginx", "1.15-alpine"),
    ("Nonewprivs", "e2e_registry", "nonewprivs", "1.0"),
    ("NoSnatTest", "e2e_registry", "no-snat-test", "1.0"),
    ("NoSnatTestProxy", "e2e_registry", "no-snat-test-proxy", "1.0"),
    ("Pause", "gc_registry", "pause", "3.1"),
    ("Porter", "e2e_registry", "porter", "1.0"),
    ("PortForwardTester", "e2e_registry", "port-forward-tester", "1.0"),
    ("Redis", "e2e_registry", "redis", "1.0"),
    ("ResourceConsumer", "e2e_registry", "resource-consumer", "1.5"),
    ("ResourceController", "e2e_registry", "resource-consumer/controller", "1.0"),
    ("ServeHostname", "e2e_registry", "serve-hostname", "1.1"),
    ("TestWebserver", "e2e_registry", "test-webserver", "1.0"),
    ("VolumeNFSServer", "e2e_registry", "volume/nfs", "1.0"),
    ("VolumeISCSIServer", "e2e_registry", "volume/iscsi", "1.0"),
    ("VolumeGlusterServer", "e2e_registry", "volume/gluster", "1.0"),
    ("VolumeRBDServer", "e2e_registry", "volume/rbd", "1.0.1"),
)

# 1.14 differs from 1.13 only in the liveness image version.
_V1_14 = tuple(
    ("Liveness", "e2e_registry", "liveness", "1.1") if entry[0] == "Liveness" else entry
    for entry in _V1_13
)

_V1_15 = (
    ("CRDConversionWebhook", "e2e_registry", "crd-conversion-webhook", "1.13rev2"),
    ("AdmissionWebhook", "e2e_registry", "webhook", "1.15v1"),
    ("Agnhost", "e2e_registry", "agnhost", "1.0"),
    ("APIServer", "e2e_registry", "sample-apiserver", "1.10"),
    ("AppArmorLoader", "e2e_registry", "apparmor-loader", "1.0"),
    ("AuditProxy", "e2e_registry", "audit-proxy", "1.0"),
    ("BusyBox", "docker_library_registry", "busybox", "1.29"),
    ("CheckMetadataConcealment", "e2e_registry", "metadata-concealment", "1.2"),
    ("CudaVectorAdd", "e2e_registry", "cuda-vector-add", "1.0"),
    ("CudaVectorAdd2", "e2e_registry", "cuda-vector-add", "2.0"),
    ("Dnsutils", "e2e_registry", "dnsutils", "1.1"),
    ("EchoServer", "e2e_registry", "echoserver", "2.2"),
    ("EntrypointTester", "e2e_registry", "entrypoint-tester", "1.0"),
    ("Etcd", "gc_registry", "etcd", "3.3.10"),
    ("Fakegitserver", "e2e_registry", "fakegitserver", "1.0"),
    ("GBFrontend", "sample_registry", "gb-frontend", "v6"),
    ("GBRedisSlave", "sample_registry", "gb-redisslave", "v3"),
    ("Hostexec", "e2e_registry", "hostexec", "1.1"),
    ("InClusterClient", "e2e_registry", "inclusterclient", "1.0"),
    ("IpcUtils", "e2e_registry", "ipc-utils", "1.0"),
    ("Iperf", "e2e_registry", "iperf", "1.0"),
    ("JessieDnsutils", "e2e_registry", "jessie-dnsutils", "1.0"),
    ("Kitten", "e2e_registry", "kitten", "1.0"),
    ("Liveness", "e2e_registry", "liveness", "1.1"),
    ("LogsGenerator", "e2e_registry", "logs-generator", "1.0"),
    ("Mounttest", "e2e_registry", "mounttest", "1.0"),
    ("MounttestUser", "e2e_registry", "mounttest-user", "1.0"),
    ("Nautilus", "e2e_registry", "nautilus", "1.0"),
    ("Net", "e2e_registry", "net", "1.0"),
    ("Netexec", "e2e_registry", "netexec", "1.1"),
    ("Nettest", "e2e_registry", "nettest", "1.0"),
    ("Nginx", "docker_library_registry", "nginx", "1.14-alpine"),
    ("NginxNew", "docker_library_registry", "nginx", "1.15-alpine"),
    ("Nonewprivs", "e2e_registry", "nonewprivs", "1.0"),
    ("NonRoot", "e2e_registry", "nonroot", "1.0"),
    ("NoSnatTest", "e2e_registry", "no-snat-test", "1.0"),
    ("NoSnatTestProxy", "e2e_registry", "no-snat-test-proxy", "1.0"),
    ("Pause", "gc_registry", "pause", "3.1"),
    ("Perl", "docker_library_registry", "perl", "5.26"),
    ("Porter", "e2e_registry", "porter", "1.0"),
    ("PortForwardTester", "e2e_registry", "port-forward-tester", "1.0"),
    ("Redis", "e2e_registry", "redis", "1.0"),
    ("ResourceConsumer", "e2e_registry", "resource-consumer", "1.5"),
    ("ResourceController", "e2e_registry", "resource-consumer-controller", "1.0"),
    ("ServeHostname", "e2e_registry", "serve-hostname", "1.1"),
    ("TestWebserver", "e2e_registry", "test-webserver", "1.0"),
    ("VolumeNFSServer", "e2e_registry", "volume/nfs", "1.0"),
    ("VolumeISCSIServer", "e2e_registry", "volume/iscsi", "2.0"),
    ("VolumeGlusterServer", "e2e_registry", "volume/gluster", "1.0"),
    ("VolumeRBDServer", "e2e_registry", "volume/rbd", "1.0.1"),
)

_TABLES = {13: _V1_13, 14: _V1_14, 15: _V1_15}


@dataclass
class RegistryList:
    """Public and private image registries for a Kubernetes version."""

    docker_library_registry: str = "docker.io/library"
    e2e_registry: str = "gcr.io/kubernetes-e2e-test-images"
    etcd_registry: str = "quay.io/coreos"
    gc_registry: str = "k8s.gcr.io"
    private_registry: str = "gcr.io/k8s-authenticated-test"
    sample_registry: str = "gcr.io/google-samples"
    k8s_version: Version | None = None

    @classmethod
    def load(cls, repo_config, k8s_version):
        """Build the default registries, overridden by the YAML file repo_config if given."""
        registry = cls()
        if repo_config:
            registry = replace(registry, **_read_overrides(repo_config))
        registry.k8s_version = validate_version(k8s_version)
        return registry

    def image_configs(self):
        """Return the image configurations for this registry's Kubernetes version."""
        if self.k8s_version is None:
            raise ValueError("No Kubernetes version set for registry list")
        segments = self.k8s_version.segments
        table = _TABLES.get(segments[1]) if segments[0] == 1 else None
        if table is None:
            raise ValueError(
                f"No matching configuration for k8s version: {self.k8s_version}"
            )
        return {
            key: ImageConfig(getattr(self, registry_field), name, version)
            for key, registry_field, name, version in table
        }


def _read_overrides(repo_config):
    try:
        content = Path(repo_config).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Error reading '{repo_config}' file contents: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(
            f"Error unmarshalling '{repo_config}' YAML file: {exc}"
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Error unmarshalling '{repo_config}' YAML file: expected a mapping"
        )

    known = {f.name for f in fields(RegistryList)}
    overrides = {}
    for key, value in data.items():
        field_name = _CONFIG_KEYS.get(key)
        if field_name is None or field_name not in known:
            continue
        if isinstance(value, (dict, list)):
            raise ValueError(
                f"Error unmarshalling '{repo_config}' YAML file: "
                f"{key} must be a string"
            )
        overrides[field_name] = "" if value is None else str(value)
    return overrides