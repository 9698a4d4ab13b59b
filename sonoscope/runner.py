"""Running external commands, with helpers for output capture and retries."""

from __future__ import annotations

import io
import logging
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import TextIO

logger = logging.getLogger(__name__)


@dataclass
class LocalCommand:
    """A command run on the local machine.

    ``env`` holds ``key=value`` entries; ``None`` inherits the current
    environment. Streams left as ``None`` are discarded (or empty, for stdin).
    """

    argv: list[str]
    env: list[str] | None = None
    stdin: TextIO | None = None
    stdout: TextIO | None = None
    stderr: TextIO | None = None

    def run(self):
        """Run the command, raising CalledProcessError on a non-zero exit."""
        logger.debug("Running: %s", self.argv)
        merged = self.stdout is not None and self.stdout is self.stderr

        env = None
        if self.env is not None:
            env = {}
            for entry in self.env:
                key, _, value = entry.partition("=")
                env[key] = value

        options = {}
        if self.stdin is not None:
            options["input"] = self.stdin.read()
        else:
            options["stdin"] = subprocess.DEVNULL

        if merged:
            stderr_target = subprocess.STDOUT
        elif self.stderr is not None:
            stderr_target = subprocess.PIPE
        else:
            stderr_target = subprocess.DEVNULL

        result = subprocess.run(
            self.argv,
            stdout=subprocess.PIPE if self.stdout is not None else subprocess.DEVNULL,
            stderr=stderr_target,
            env=env,
            encoding="utf-8",
            errors="replace",
            check=False,
            **options,
        )

        if self.stdout is not None and result.stdout:
            self.stdout.write(result.stdout)
        if not merged and self.stderr is not None and result.stderr:
            self.stderr.write(result.stderr)

        if result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode, self.argv, output=result.stdout, stderr=result.stderr
            )


def command(name, *args):
    """Build a local command from a program name and its arguments."""
    return LocalCommand([name, *args])


def combined_output_lines(cmd):
    """Run cmd and return its interleaved stdout and stderr as a list of lines."""
    buffer = io.StringIO()
    cmd.stdout = buffer
    cmd.stderr = buffer
    cmd.run()
    return buffer.getvalue().splitlines()


def inherit_output(cmd):
    """Send cmd's output to this process's stdout and stderr."""
    cmd.stderr = sys.stderr
    cmd.stdout = sys.stdout


def run_logging_output_on_fail(cmd, retries):
    """Run cmd, retrying up to ``retries`` times; log its output if all attempts fail."""
    buffer = io.StringIO()
    cmd.stdout = buffer
    cmd.stderr = buffer
    try:
        cmd.run()
        return
    except (subprocess.CalledProcessError, OSError) as exc:
        error = exc

    for attempt in range(1, retries + 1):
        time.sleep(attempt)
        try:
            cmd.run()
            return
        except (subprocess.CalledProcessError, OSError) as exc:
            error = exc

    logger.error("failed with following error after %d retries:", retries)
    for line in buffer.getvalue().splitlines():
        logger.error("%s", line)
    raise error