"""Keeping the aggregator pod's status annotation up to date."""

from __future__ import annotations

import json
import logging
import threading

from sonoscope.status import (
    COMPLETE_STATUS,
    FAILED_STATUS,
    RUNNING_STATUS,
    STATUS_ANNOTATION_NAME,
    STATUS_POD_NAME,
    PluginStatus,
    Status,
)

logger = logging.getLogger(__name__)


class Updater:
    """Tracks the status of every expected result and publishes it on the pod.

    ``expected`` holds objects with ``node_name`` and ``result_type``;
    ``client.patch_pod(namespace, name, patch)`` applies a JSON merge patch.
    """

    def __init__(self, expected, namespace, client):
        self.namespace = namespace
        self.client = client
        self._lock = threading.RLock()
        self.status = Status(
            plugins=[
                PluginStatus(
                    plugin=result.result_type,
                    node=result.node_name,
                    status=RUNNING_STATUS,
                )
                for result in expected
            ],
            status=RUNNING_STATUS,
        )
        self._lookup = {(p.node, p.plugin): p for p in self.status.plugins}

    def receive(self, update):
        """Record the status of one plugin result and recompute the overall status."""
        with self._lock:
            key = (update.node, update.plugin)
            plugin_status = self._lookup.get(key)
            if plugin_status is None:
                raise ValueError(
                    f"couldn't find key for node={update.node!r} plugin={update.plugin!r}"
                )
            plugin_status.status = update.status
            self.status.update_status()

    def serialize(self):
        """Return the status encoded as compact JSON."""
        with self._lock:
            return json.dumps(self.status.to_dict(), separators=(",", ":"))

    def annotate(self, results):
        """Take in results, then write the status annotation on the aggregator pod."""
        self.receive_all(results)
        with self._lock:
            patch = json.dumps(get_patch(self.serialize()), separators=(",", ":"))
        try:
            self.client.patch_pod(self.namespace, STATUS_POD_NAME, patch.encode("utf-8"))
        except Exception as exc:
            raise RuntimeError(f"couldn't patch pod annotation: {exc}") from exc

    def receive_all(self, results):
        """Record each result as complete, or failed when it carries an error."""
        for result in list(results.values()):
            state = FAILED_STATUS if result.error else COMPLETE_STATUS
            update = PluginStatus(
                plugin=result.result_type, node=result.node_name, status=state
            )
            try:
                self.receive(update)
            except ValueError as exc:
                logger.info(
                    "couldn't update plugin (node=%s plugin=%s status=%s): %s",
                    update.node,
                    update.plugin,
                    state,
                    exc,
                )


def get_patch(annotation):
    """Return a merge patch that sets the status annotation to annotation."""
    return {"metadata": {"annotations": {STATUS_ANNOTATION_NAME: annotation}}}