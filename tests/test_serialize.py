import json
import re

import pytest

from sonoscope.serialize import filter_namespaces, serialize_obj


class FakeClient:
    def __init__(self, names=None, error=None):
        self.names = names or []
        self.error = error

    def list_namespaces(self):
        if self.error is not None:
            raise self.error
        return [{"metadata": {"name": name}} for name in self.names]


def test_filter_namespaces_matches_pattern():
    client = FakeClient(["default", "kube-system", "kube-public", "sonobuoy", "app"])
    assert filter_namespaces(client, "kube-.*|sonobuoy") == [
        "kube-system",
        "kube-public",
        "sonobuoy",
    ]


def test_filter_namespaces_search_is_unanchored():
    client = FakeClient(["team-a-prod", "team-b-dev"])
    assert filter_namespaces(client, "prod") == ["team-a-prod"]


def test_filter_namespaces_invalid_pattern():
    with pytest.raises(re.error):
        filter_namespaces(FakeClient(["default"]), "(")


def test_filter_namespaces_list_error_propagates():
    with pytest.raises(ConnectionError):
        filter_namespaces(FakeClient(error=ConnectionError("down")), ".*")


def test_serialize_obj_round_trip(tmp_path):
    obj = {"items": [{"name": "a"}, {"name": "b"}], "count": 2}
    serialize_obj(obj, tmp_path / "nested" / "dir", "out.json")
    text = (tmp_path / "nested" / "dir" / "out.json").read_text(encoding="utf-8")
    assert json.loads(text) == obj
    assert " " not in text


def test_serialize_obj_unserializable(tmp_path):
    with pytest.raises(TypeError):
        serialize_obj({"x": object()}, tmp_path, "bad.json")