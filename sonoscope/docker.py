"""Operations on container images through the local docker command."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable

from sonoscope.runner import command, run_logging_output_on_fail

logger = logging.getLogger(__name__)


@dataclass
class LocalDocker:
    """Drives the docker client installed on this machine."""

    command_factory: Callable = command

    def _docker(self, *args):
        return self.command_factory("docker", *args)

    def pull_if_not_present(self, image, retries):
        """Pull image unless it is already present locally."""
        try:
            self._docker("inspect", "--type=image", image).run()
        except (subprocess.CalledProcessError, OSError):
            return self.pull(image, retries)
        logger.info("Image: %s present locally", image)

    def pull(self, image, retries):
        """Pull image, retrying up to ``retries`` times."""
        logger.info("Pulling image: %s ...", image)
        run_logging_output_on_fail(self._docker("pull", image), retries)

    def push(self, image, retries):
        """Push image, retrying up to ``retries`` times."""
        logger.info("Pushing image: %s ...", image)
        run_logging_output_on_fail(self._docker("push", image), retries)

    def tag(self, src, dest, retries):
        """Tag src as dest, retrying up to ``retries`` times."""
        logger.info("Tagging image: %s as %s ...", src, dest)
        run_logging_output_on_fail(self._docker("tag", src, dest), retries)

    def rmi(self, image, retries):
        """Remove image, retrying up to ``retries`` times."""
        logger.info("Deleting image: %s ...", image)
        run_logging_output_on_fail(self._docker("rmi", image), retries)

    def save(self, images, filename):
        """Export images to a tar file."""
        logger.info("Saving images: ...")
        run_logging_output_on_fail(
            self._docker("save", *images, "--output", filename), 0
        )