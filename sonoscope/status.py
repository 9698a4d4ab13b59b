"""The overall and per-plugin status of a run, as kept on the aggregator pod."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

RUNNING_STATUS = "running"
COMPLETE_STATUS = "complete"
POST_PROCESSING_STATUS = "post-processing"
FAILED_STATUS = "failed"

STATUS_ANNOTATION_NAME = "sonobuoy.hept.io/status"
STATUS_POD_NAME = "sonobuoy"


@dataclass
class PluginStatus:
    """The status of one plugin on one node (or globally when node is empty)."""

    plugin: str = ""
    node: str = ""
    status: str = ""

    def to_dict(self):
        return {"plugin": self.plugin, "node": self.node, "status": self.status}


@dataclass
class Status:
    """The status of a whole run."""

    plugins: list[PluginStatus] = field(default_factory=list)
    status: str = ""

    def update_status(self):
        """Derive the overall status from the plugins' statuses."""
        status = POST_PROCESSING_STATUS
        for plugin in self.plugins:
            if plugin.status == COMPLETE_STATUS:
                continue
            if plugin.status == FAILED_STATUS:
                status = FAILED_STATUS
            elif plugin.status == RUNNING_STATUS:
                if status != FAILED_STATUS:
                    status = RUNNING_STATUS
            else:
                raise ValueError(f"unknown status {plugin.status}")
        self.status = status

    def to_dict(self):
        """Return the JSON-ready form of the status."""
        return {
            "plugins": [plugin.to_dict() for plugin in self.plugins],
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data):
        """Build a status from its JSON form."""
        plugins = [
            PluginStatus(
                plugin=entry.get("plugin", ""),
                node=entry.get("node", ""),
                status=entry.get("status", ""),
            )
            for entry in data.get("plugins") or []
        ]
        return cls(plugins=plugins, status=data.get("status", ""))


def get_status(client, namespace):
    """Read the run status from the annotation on the aggregator pod.

    ``client.read_namespace(name)`` must raise if the namespace is missing and
    ``client.read_pod(namespace, name)`` returns the pod as a mapping.
    """
    try:
        client.read_namespace(namespace)
    except Exception as exc:
        raise RuntimeError(f"sonobuoy namespace does not exist: {exc}") from exc

    try:
        pod = client.read_pod(namespace, STATUS_POD_NAME)
    except Exception as exc:
        raise RuntimeError(f"could not retrieve sonobuoy pod: {exc}") from exc

    phase = (pod.get("status") or {}).get("phase", "")
    if phase != "Running":
        raise RuntimeError(f'pod has status "{phase}"')

    annotations = (pod.get("metadata") or {}).get("annotations") or {}
    if STATUS_ANNOTATION_NAME not in annotations:
        raise RuntimeError(f'missing status annotation "{STATUS_ANNOTATION_NAME}"')

    try:
        data = json.loads(annotations[STATUS_ANNOTATION_NAME])
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return Status.from_dict(data)
    except (ValueError, AttributeError) as exc:
        raise RuntimeError(
            f"couldn't unmarshal the JSON status annotation: {exc}"
        ) from exc