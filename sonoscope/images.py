"""Pulling, pushing, saving and deleting the images used by end-to-end tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sonoscope.docker import LocalDocker
from sonoscope.registry import ImageConfig, RegistryList

_MISSING_IMAGE = ImageConfig("", "", "")


@dataclass
class ImageClient:
    """Applies image operations through a docker client."""

    docker_client: Any = field(default_factory=LocalDocker)

    def pull_images(self, images, retries):
        """Pull every image that is not present locally; return the errors met."""
        errors = []
        for config in images.values():
            image = config.e2e_image()
            try:
                self.docker_client.pull_if_not_present(image, retries)
            except Exception as exc:
                errors.append(_wrap(exc, f"couldn't pull image: {image}"))
        return errors

    def push_images(self, upstream_images, private_images, retries):
        """Tag each upstream image with its private name and push it; return the errors met."""
        errors = []
        for key, upstream in upstream_images.items():
            source = upstream.e2e_image()
            target = private_images.get(key, _MISSING_IMAGE).e2e_image()

            if source == target:
                print(f"Skipping public image: {source}")
                continue

            try:
                self.docker_client.tag(source, target, retries)
            except Exception as exc:
                errors.append(_wrap(exc, f"couldn't tag image: {source}"))

            try:
                self.docker_client.push(target, retries)
            except Exception as exc:
                errors.append(_wrap(exc, f"couldn't push image: {source}"))
        return errors

    def download_images(self, images, version):
        """Save images to a tar file named for version and return the file name."""
        file_name = tar_file_name(version)
        try:
            self.docker_client.save(list(images), file_name)
        except Exception as exc:
            raise _wrap(exc, "couldn't save images to tar") from exc
        return file_name

    def delete_images(self, images, retries):
        """Remove every image locally; return the errors met."""
        errors = []
        for config in images.values():
            image = config.e2e_image()
            try:
                self.docker_client.rmi(image, retries)
            except Exception as exc:
                errors.append(_wrap(exc, f"couldn't delete image: {image}"))
        return errors


def get_images(e2e_registry_config, version):
    """Return the image configurations for version, with registries from the given file."""
    try:
        registry = RegistryList.load(e2e_registry_config, version)
    except (OSError, ValueError) as exc:
        raise ValueError(f"couldn't init Registry List: {exc}") from exc

    try:
        return registry.image_configs()
    except ValueError as exc:
        raise ValueError(f"couldn't get images for version: {exc}") from exc


def tar_file_name(version):
    """Return the name of the tar file the images of a Kubernetes version are saved to."""
    return f"kubernetes_e2e_images_{version}.tar"


def _wrap(exc, message):
    error = RuntimeError(f"{message}: {exc}")
    error.__cause__ = exc
    return error