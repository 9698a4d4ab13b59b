"""Namespace filtering and writing objects out as JSON files."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


def filter_namespaces(client, pattern):
    """Return the names of the namespaces whose name matches the regular expression.

    ``client.list_namespaces()`` returns namespace objects as mappings.
    """
    regex = re.compile(pattern)
    matched = []
    for namespace in client.list_namespaces():
        name = (namespace.get("metadata") or {}).get("name", "")
        is_match = regex.search(name) is not None
        logger.info("Namespace %s Matched=%s", name, is_match)
        if is_match:
            matched.append(name)
    return matched


def serialize_obj(obj, outpath, file):
    """Write obj as compact JSON to outpath/file, creating outpath if needed."""
    directory = Path(outpath)
    directory.mkdir(parents=True, exist_ok=True)
    data = json.dumps(obj, separators=(",", ":"))
    (directory / file).write_text(data, encoding="utf-8")