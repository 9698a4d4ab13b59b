"""Querying cluster resources and server information into the results tree."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path

from sonoscope.dynamic import GroupVersionResource
from sonoscope.serialize import serialize_obj

logger = logging.getLogger(__name__)

NS_RESOURCE_LOCATION = "resources/ns"
CLUSTER_RESOURCE_LOCATION = "resources/cluster"
HOSTS_LOCATION = "hosts"
META_LOCATION = "meta"

_LIST_VERB = "list"
_SECRET_RESOURCE_NAME = "secrets"

_NAME = r"[A-Za-z0-9](?:[-A-Za-z0-9_.]*[A-Za-z0-9])?"
_PREFIX = r"[a-z0-9](?:[-a-z0-9.]*[a-z0-9])?"
_KEY = rf"(?:{_PREFIX}/)?{_NAME}"
_VALUE = rf"(?:{_NAME})?"
_REQUIREMENT = (
    rf"\s*(?:!\s*{_KEY}"
    rf"|{_KEY}(?:\s*(?:==|!=|=)\s*{_VALUE}"
    rf"|\s+(?:in|notin)\s*\(\s*{_VALUE}(?:\s*,\s*{_VALUE})*\s*\)"
    rf"|\s*[<>]\s*-?[0-9]+)?)\s*"
)
_SELECTOR = re.compile(rf"{_REQUIREMENT}(?:,{_REQUIREMENT})*")


class _TimedQueryError(RuntimeError):
    """A timed query failed; carries how long it ran."""

    def __init__(self, message, duration):
        super().__init__(message)
        self.duration = duration


def _valid_label_selector(selector):
    return _SELECTOR.fullmatch(selector) is not None


def _checked_selector(label_selector):
    if not label_selector:
        return ""
    if not _valid_label_selector(label_selector):
        logger.warning("Labelselector %s failed to parse", label_selector)
        return ""
    return label_selector


def timed_list_query(outpath, file, query):
    """Run a list query and save its items; return how long the query took.

    Nothing is written when the list is empty.
    """
    start = time.perf_counter()
    try:
        items = query()
    except Exception as exc:
        duration = time.perf_counter() - start
        raise _TimedQueryError(str(exc), duration) from exc
    duration = time.perf_counter() - start

    if items:
        try:
            serialize_obj(list(items), outpath, file)
        except Exception as exc:
            raise _TimedQueryError(str(exc), duration) from exc
    return duration


def timed_object_query(outpath, file, query):
    """Run a query for one object and save it; return how long the query took."""
    start = time.perf_counter()
    try:
        obj = query()
    except Exception as exc:
        duration = time.perf_counter() - start
        raise _TimedQueryError(str(exc), duration) from exc
    duration = time.perf_counter() - start

    try:
        serialize_obj(obj, outpath, file)
    except Exception as exc:
        raise _TimedQueryError(str(exc), duration) from exc
    return duration


def timed_query(recorder, name, namespace, query):
    """Run a timed query and record its duration and any error on recorder."""
    start = time.perf_counter()
    error = None
    try:
        duration = query()
    except _TimedQueryError as exc:
        duration = exc.duration
        error = exc.__cause__ or exc
    except Exception as exc:
        duration = time.perf_counter() - start
        error = exc
    recorder.record_query(name, namespace, duration, error)


def _parse_group_version(text):
    if not text or text == "/":
        return ("", "")
    parts = text.split("/")
    if len(parts) == 1:
        return ("", parts[0])
    if len(parts) == 2:
        return (parts[0], parts[1])
    raise ValueError(f"unexpected GroupVersion string: {text}")


def get_resources(client):
    """Map each (group, version) to its resources, keeping the first group of each name.

    ``client.discovery_client.server_preferred_resources()`` returns resource
    lists in discovery form: ``{"groupVersion": ..., "resources": [...]}``.
    """
    resource_lists = client.discovery_client.server_preferred_resources()
    seen = set()
    by_version = {}
    for resource_list in resource_lists:
        try:
            group_version = _parse_group_version(resource_list.get("groupVersion", ""))
        except ValueError as exc:
            raise ValueError(f"parsing schema: {exc}") from exc

        resources = []
        for resource in resource_list.get("resources") or []:
            name = resource.get("name", "")
            if name in seen:
                continue
            resources.append(resource)
            seen.add(name)
        by_version[group_version] = resources
    return by_version


def filter_resources(gvrs, namespaced, want_resources):
    """Select listable resources of the given scope, honouring want_resources.

    With want_resources None every resource except secrets is selected.
    """
    results = []
    for (group, version), resources in gvrs.items():
        for resource in resources:
            name = resource.get("name", "")
            if bool(resource.get("namespaced", False)) != namespaced:
                continue
            if _LIST_VERB not in (resource.get("verbs") or []):
                continue
            if want_resources is not None:
                if name not in want_resources:
                    logger.info(
                        "%s not specified in non-nil Resources. Skipping %s query.",
                        name,
                        name,
                    )
                    continue
            elif name == _SECRET_RESOURCE_NAME:
                logger.info(
                    "Resources is not set explicitly implying query all resources, "
                    "but skipping %s for safety. Specify the value explicitly in "
                    "Resources to gather this data.",
                    name,
                )
                continue
            results.append(GroupVersionResource(group, version, name))
    return results


def get_all_filtered_resources(client, want_resources):
    """Return the (cluster-scoped, namespaced) resources to query."""
    try:
        group_resources = get_resources(client)
    except Exception as exc:
        raise RuntimeError(f"choosing resources to gather: {exc}") from exc
    return (
        filter_resources(group_resources, False, want_resources),
        filter_resources(group_resources, True, want_resources),
    )


def query_resources(client, recorder, resources, namespace, output_dir, label_selector=""):
    """Query each resource and write its items under output_dir.

    With a namespace the results go to resources/ns/<namespace>/, otherwise to
    resources/cluster/. ``client.client.resource(gvr).list(label_selector=...,
    field_selector=...)`` returns the items.
    """
    if not resources:
        return

    if namespace is not None:
        logger.info("Running ns query (%s)", namespace)
        outdir = Path(output_dir) / NS_RESOURCE_LOCATION / namespace
    else:
        logger.info("Running cluster queries")
        outdir = Path(output_dir) / CLUSTER_RESOURCE_LOCATION
    outdir.mkdir(parents=True, exist_ok=True)

    selector = _checked_selector(label_selector)
    field_selector = f"metadata.namespace={namespace}" if namespace else ""

    for gvr in resources:

        def lister(gvr=gvr):
            try:
                return client.client.resource(gvr).list(
                    label_selector=selector, field_selector=field_selector
                )
            except Exception as exc:
                raise RuntimeError(f"listing resource {gvr}: {exc}") from exc

        group_text = gvr.group or "core"
        file_name = f"{group_text}_{gvr.version}_{gvr.resource}.json"

        def query(lister=lister, file_name=file_name):
            return timed_list_query(outdir, file_name, lister)

        timed_query(recorder, gvr.resource, namespace or "", query)


def query_server_data(client, recorder, output_dir, want_resources=None):
    """Record the server version and API groups, unless want_resources excludes them.

    ``client.server_version()`` and ``client.server_groups()`` return the data.
    """
    _query_server_object(
        client.server_version, recorder, output_dir, want_resources, "serverversion"
    )
    _query_server_object(
        client.server_groups, recorder, output_dir, want_resources, "servergroups"
    )


def _query_server_object(fetch, recorder, output_dir, want_resources, name):
    if want_resources is not None and name not in want_resources:
        logger.info("%s not specified in non-nil Resources. Skipping %s query.", name, name)
        return

    def query():
        return timed_object_query(output_dir, f"{name}.json", fetch)

    timed_query(recorder, name, "", query)