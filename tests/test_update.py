import json
from dataclasses import dataclass

import pytest

from sonoscope.status import FAILED_STATUS, PluginStatus
from sonoscope.update import Updater, get_patch


@dataclass
class Expected:
    node_name: str
    result_type: str


@dataclass
class Result:
    node_name: str
    result_type: str
    error: str = ""


EXPECTED = [
    Expected("node1", "systemd"),
    Expected("node2", "systemd"),
    Expected("", "e2e"),
]


class FakeClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.patches = []

    def patch_pod(self, namespace, name, patch):
        if self.fail:
            raise ConnectionError("unreachable")
        self.patches.append((namespace, name, patch))


def test_create_updater():
    updater = Updater(EXPECTED, "heptio-sonobuoy-test", None)
    updater.receive(PluginStatus(status=FAILED_STATUS, node="node1", plugin="systemd"))
    assert updater.status.status == FAILED_STATUS


def test_initial_status_is_running():
    updater = Updater(EXPECTED, "ns", None)
    assert updater.status.status == "running"
    assert [p.status for p in updater.status.plugins] == ["running"] * 3


def test_receive_unknown_key():
    updater = Updater(EXPECTED, "ns", None)
    with pytest.raises(ValueError, match="couldn't find key"):
        updater.receive(PluginStatus(plugin="systemd", node="node9", status="complete"))


def test_serialize():
    updater = Updater([Expected("", "e2e")], "ns", None)
    assert updater.serialize() == (
        '{"plugins":[{"plugin":"e2e","node":"","status":"running"}],"status":"running"}'
    )


def test_receive_all():
    updater = Updater(EXPECTED, "ns", None)
    updater.receive_all(
        {
            "systemd/node1": Result("node1", "systemd"),
            "systemd/node2": Result("node2", "systemd"),
            "e2e": Result("", "e2e", error="boom"),
            "other": Result("nodeX", "other"),
        }
    )
    assert [p.status for p in updater.status.plugins] == ["complete", "complete", "failed"]
    assert updater.status.status == "failed"


def test_annotate_patches_pod():
    client = FakeClient()
    updater = Updater(EXPECTED, "test-ns", client)
    updater.annotate(
        {
            "systemd/node1": Result("node1", "systemd"),
            "systemd/node2": Result("node2", "systemd"),
            "e2e": Result("", "e2e"),
        }
    )
    assert len(client.patches) == 1
    namespace, name, patch = client.patches[0]
    assert (namespace, name) == ("test-ns", "sonobuoy")
    annotation = json.loads(patch)["metadata"]["annotations"]["sonobuoy.hept.io/status"]
    assert json.loads(annotation)["status"] == "post-processing"


def test_annotate_patch_failure():
    updater = Updater(EXPECTED, "ns", FakeClient(fail=True))
    with pytest.raises(RuntimeError, match="couldn't patch pod annotation"):
        updater.annotate({})


def test_get_patch():
    assert get_patch("{}") == {
        "metadata": {"annotations": {"sonobuoy.hept.io/status": "{}"}}
    }