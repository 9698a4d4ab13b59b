"""Collecting the logs of every container of the pods in a namespace."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

POD_LOGS_LOCATION = "podlogs"


def pod_log_options(container, limit_bytes=0, since_seconds=0):
    """Return log options for container; limits are set only when positive."""
    options = {"container": container}
    if limit_bytes > 0:
        options["limitBytes"] = limit_bytes
    if since_seconds > 0:
        options["sinceSeconds"] = since_seconds
    return options


def gather_pod_logs(
    client, namespace, output_dir, label_selector="", limit_bytes=0, since_seconds=0
):
    """Write each container's log to podlogs/<ns>/<pod>/logs/<container>.txt.

    ``client.list_pods(namespace, label_selector=...)`` returns pod mappings and
    ``client.read_pod_log(namespace, pod_name, options)`` returns the log.
    Evicted pods are skipped. Returns the paths written.
    """
    pods = client.list_pods(namespace, label_selector=label_selector)
    logger.info("Collecting Pod Logs (%s)", namespace)

    written = []
    for pod in pods:
        name = (pod.get("metadata") or {}).get("name", "")
        status = pod.get("status") or {}
        if status.get("phase") == "Failed" and status.get("reason") == "Evicted":
            logger.info("Skipping evicted pod %s.", name)
            continue

        for container in (pod.get("spec") or {}).get("containers") or []:
            container_name = container.get("name", "")
            options = pod_log_options(container_name, limit_bytes, since_seconds)
            body = client.read_pod_log(namespace, name, options)
            if isinstance(body, str):
                body = body.encode("utf-8")

            outdir = Path(output_dir) / POD_LOGS_LOCATION / namespace / name / "logs"
            outdir.mkdir(parents=True, exist_ok=True)
            outfile = outdir / f"{container_name}.txt"
            outfile.write_bytes(body)
            written.append(outfile)
    return written