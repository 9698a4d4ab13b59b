import io
import logging
import subprocess
import sys
from unittest import mock

import pytest

from sonoscope import runner


def py(script):
    return runner.command(sys.executable, "-c", script)


def test_command_builds_argv():
    cmd = runner.command("docker", "pull", "busybox")
    assert cmd.argv == ["docker", "pull", "busybox"]
    assert cmd.stdout is None and cmd.stderr is None


def test_combined_output_lines_merges_streams():
    cmd = py(
        "import sys\n"
        "print('first', flush=True)\n"
        "print('second', file=sys.stderr, flush=True)\n"
    )
    assert runner.combined_output_lines(cmd) == ["first", "second"]


def test_run_raises_on_nonzero_exit():
    cmd = py("import sys; print('bad'); sys.exit(3)")
    with pytest.raises(subprocess.CalledProcessError) as info:
        runner.combined_output_lines(cmd)
    assert info.value.returncode == 3
    assert "bad" in info.value.output


def test_env_entries_are_passed():
    cmd = py("import os; print(os.environ['SONO_VALUE'])")
    cmd.env = ["SONO_VALUE=hello"]
    assert runner.combined_output_lines(cmd) == ["hello"]


def test_stdin_is_fed():
    cmd = py("import sys; sys.stdout.write(sys.stdin.read().upper())")
    cmd.stdin = io.StringIO("payload")
    assert runner.combined_output_lines(cmd) == ["PAYLOAD"]


def test_separate_streams():
    cmd = py("import sys; print('out'); print('err', file=sys.stderr)")
    cmd.stdout, cmd.stderr = io.StringIO(), io.StringIO()
    cmd.run()
    assert cmd.stdout.getvalue().splitlines() == ["out"]
    assert cmd.stderr.getvalue().splitlines() == ["err"]


def test_inherit_output():
    cmd = runner.command("true")
    runner.inherit_output(cmd)
    assert cmd.stdout is sys.stdout
    assert cmd.stderr is sys.stderr


def test_run_logging_output_on_fail_success():
    cmd = py("print('ok')")
    with mock.patch("sonoscope.runner.time.sleep") as sleep:
        assert runner.run_logging_output_on_fail(cmd, 3) is None
    assert sleep.call_count == 0
    assert cmd.stdout is cmd.stderr
    assert cmd.stdout.getvalue().strip() == "ok"


def test_run_logging_output_on_fail_retries_and_logs(caplog):
    cmd = py("import sys; print('broken output'); sys.exit(1)")
    with mock.patch("sonoscope.runner.time.sleep") as sleep:
        with caplog.at_level(logging.ERROR, logger="sonoscope.runner"):
            with pytest.raises(subprocess.CalledProcessError):
                runner.run_logging_output_on_fail(cmd, 2)
    assert sleep.call_args_list == [mock.call(1), mock.call(2)]
    messages = [r.getMessage() for r in caplog.records]
    assert "failed with following error after 2 retries:" in messages
    assert "broken output" in messages


def test_run_logging_output_on_fail_recovers(tmp_path):
    marker = tmp_path / "marker"
    cmd = py(
        "import pathlib, sys\n"
        f"p = pathlib.Path({str(marker)!r})\n"
        "if not p.exists():\n"
        "    p.write_text('x')\n"
        "    sys.exit(1)\n"
    )
    with mock.patch("sonoscope.runner.time.sleep") as sleep:
        assert runner.run_logging_output_on_fail(cmd, 3) is None
    assert sleep.call_args_list == [mock.call(1)]


def test_missing_program_raises_after_retries():
    cmd = runner.command("definitely-not-a-real-program-sonoscope")
    with mock.patch("sonoscope.runner.time.sleep"):
        with pytest.raises(OSError):
            runner.run_logging_output_on_fail(cmd, 1)