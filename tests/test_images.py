from dataclasses import dataclass

import pytest

from sonoscope.images import ImageClient, get_images, tar_file_name
from sonoscope.registry import ImageConfig

IMGS = {"test": ImageConfig(registry="foo.io/sonobuoy", name="test1", version="x.y")}
PRIVATE_IMGS = {
    "test": ImageConfig(registry="private.io/sonobuoy", name="test1", version="x.y")
}


@dataclass
class FakeDockerClient:
    image_exists: bool = False
    push_fails: bool = False
    pull_fails: bool = False
    tag_fails: bool = False
    save_fails: bool = False
    delete_fails: bool = False

    def pull_if_not_present(self, image, retries):
        if self.image_exists:
            return
        self.pull(image, retries)

    def pull(self, image, retries):
        if self.pull_fails:
            raise RuntimeError("pull failed")

    def push(self, image, retries):
        if self.push_fails:
            raise RuntimeError("push failed")

    def tag(self, src, dest, retries):
        if self.tag_fails:
            raise RuntimeError("tag failed")

    def rmi(self, image, retries):
        if self.delete_fails:
            raise RuntimeError("delete failed")

    def save(self, images, filename):
        if self.save_fails:
            raise RuntimeError("save failed")


@pytest.mark.parametrize(
    "client, private_imgs, want_error_count",
    [
        (FakeDockerClient(), PRIVATE_IMGS, 0),
        (FakeDockerClient(tag_fails=True), PRIVATE_IMGS, 1),
        (FakeDockerClient(push_fails=True, tag_fails=True), PRIVATE_IMGS, 2),
        (FakeDockerClient(push_fails=True, tag_fails=True), IMGS, 0),
    ],
    ids=["simple", "tag fails", "push fails", "source equals destination"],
)
def test_push_images(client, private_imgs, want_error_count):
    errors = ImageClient(docker_client=client).push_images(IMGS, private_imgs, 0)
    assert len(errors) == want_error_count


def test_push_images_error_messages():
    client = FakeDockerClient(push_fails=True, tag_fails=True)
    errors = ImageClient(docker_client=client).push_images(IMGS, PRIVATE_IMGS, 0)
    assert [str(e) for e in errors] == [
        "couldn't tag image: foo.io/sonobuoy/test1:x.y: tag failed",
        "couldn't push image: foo.io/sonobuoy/test1:x.y: push failed",
    ]


def test_push_images_skips_public_image(capsys):
    client = FakeDockerClient(push_fails=True, tag_fails=True)
    errors = ImageClient(docker_client=client).push_images(IMGS, IMGS, 0)
    assert errors == []
    assert capsys.readouterr().out == "Skipping public image: foo.io/sonobuoy/test1:x.y\n"


@pytest.mark.parametrize(
    "client, want_error_count",
    [
        (FakeDockerClient(image_exists=False, pull_fails=False), 0),
        (FakeDockerClient(image_exists=True, pull_fails=False), 0),
        (FakeDockerClient(image_exists=False, pull_fails=True), 1),
    ],
    ids=["simple", "image exists", "error pulling image"],
)
def test_pull_images(client, want_error_count):
    errors = ImageClient(docker_client=client).pull_images(IMGS, 0)
    assert len(errors) == want_error_count


def test_pull_images_error_message():
    errors = ImageClient(docker_client=FakeDockerClient(pull_fails=True)).pull_images(IMGS, 0)
    assert str(errors[0]) == "couldn't pull image: foo.io/sonobuoy/test1:x.y: pull failed"


def test_download_images():
    client = ImageClient(docker_client=FakeDockerClient())
    name = client.download_images(["foo.io/sonobuoy/test:1.0"], "99.YY.ZZ")
    assert name == tar_file_name("99.YY.ZZ")


def test_download_images_fails():
    client = ImageClient(docker_client=FakeDockerClient(save_fails=True))
    with pytest.raises(RuntimeError, match="couldn't save images to tar"):
        client.download_images(["foo.io/sonobuoy/test:1.0"], "99.YY.ZZ")


@pytest.mark.parametrize(
    "client, want_error_count",
    [(FakeDockerClient(), 0), (FakeDockerClient(delete_fails=True), 1)],
    ids=["simple", "fail"],
)
def test_delete_images(client, want_error_count):
    errors = ImageClient(docker_client=client).delete_images(IMGS, 0)
    assert len(errors) == want_error_count


def test_tar_file_name():
    assert tar_file_name("v1.14.0") == "kubernetes_e2e_images_v1.14.0.tar"


def test_get_images_default_registries():
    configs = get_images("", "v1.14.0")
    assert configs["Liveness"].e2e_image() == "gcr.io/kubernetes-e2e-test-images/liveness:1.1"
    assert configs["Pause"].e2e_image() == "k8s.gcr.io/pause:3.1"


def test_get_images_with_registry_file(tmp_path):
    config = tmp_path / "registries.yaml"
    config.write_text("e2eRegistry: registry.example.com/e2e\n", encoding="utf-8")
    configs = get_images(str(config), "v1.15.0")
    assert configs["Agnhost"].e2e_image() == "registry.example.com/e2e/agnhost:1.0"


def test_get_images_invalid_version():
    with pytest.raises(ValueError, match="couldn't init Registry List"):
        get_images("", "1.14.0")


def test_get_images_unsupported_version():
    with pytest.raises(ValueError, match="couldn't get images for version"):
        get_images("", "v2.0.0")