from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tagbump.commands import CommandRunner
from tagbump.exceptions import CommandFailed, UnexpectedOutput
from tagbump.metrics import ReleaseMetrics


def _python(code: str) -> list[str]:
    return ["-c", code]


def test_run_captures_output_and_status(tmp_path: Path) -> None:
    runner = CommandRunner(tmp_path)
    result = runner.run(sys.executable, _python("import sys; print('out'); sys.stderr.write('err'); sys.exit(3)"))
    assert not result.success
    assert result.returncode == 3
    assert result.stdout == "out\n"
    assert result.stderr == "err"
    assert result.command[0] == sys.executable


def test_run_uses_working_directory(tmp_path: Path) -> None:
    result = CommandRunner(tmp_path).run(sys.executable, _python("import os; print(os.getcwd())"))
    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_run_or_fail_raises_with_stderr() -> None:
    runner = CommandRunner()
    with pytest.raises(CommandFailed) as excinfo:
        runner.run_or_fail(sys.executable, _python("import sys; sys.stderr.write('  boom\\n'); sys.exit(1)"))
    assert excinfo.value.stderr == "boom"
    assert excinfo.value.returncode == 1
    assert str(excinfo.value) == "boom"
    assert excinfo.value.exit_code != 0


def test_run_or_fail_without_stderr_names_command() -> None:
    with pytest.raises(CommandFailed) as excinfo:
        CommandRunner().run_or_fail(sys.executable, _python("raise SystemExit(4)"))
    assert "(4)" in str(excinfo.value)


def test_run_expect_empty_output() -> None:
    runner = CommandRunner()
    runner.run_expect_empty_output(sys.executable, _python("pass"))
    with pytest.raises(UnexpectedOutput) as excinfo:
        runner.run_expect_empty_output(sys.executable, _python("print(' M Cargo.toml')"))
    assert excinfo.value.stdout == "M Cargo.toml"


def test_failure_is_reported_before_output_check() -> None:
    with pytest.raises(CommandFailed):
        CommandRunner().run_expect_empty_output(
            sys.executable, _python("import sys; print('noise'); sys.exit(2)")
        )


def test_missing_program_is_command_failed() -> None:
    metrics = ReleaseMetrics()
    runner = CommandRunner(metrics=metrics)
    with pytest.raises(CommandFailed) as excinfo:
        runner.run("definitely-not-a-real-program-tagbump")
    assert excinfo.value.returncode == 127
    assert metrics.value(
        "release_commands_total", {"program": "definitely-not-a-real-program-tagbump", "outcome": "missing"}
    ) == 1.0


def test_run_argv_and_metrics() -> None:
    metrics = ReleaseMetrics()
    runner = CommandRunner(metrics=metrics)
    runner.run_argv([sys.executable, "-c", "pass"])
    with pytest.raises(CommandFailed):
        runner.run_argv([sys.executable, "-c", "raise SystemExit(1)"])
    with pytest.raises(ValueError):
        runner.run_argv([])
    assert metrics.value("release_commands_total", {"program": sys.executable, "outcome": "ok"}) == 1.0
    assert metrics.value("release_commands_total", {"program": sys.executable, "outcome": "error"}) == 1.0


def test_undecodable_stderr_still_raises_command_failed() -> None:
    code = "import sys; sys.stderr.buffer.write(b'warning in caf\\xe9.rs\\n'); sys.exit(1)"
    with pytest.raises(CommandFailed) as excinfo:
        CommandRunner().run_argv([sys.executable, "-c", code])
    assert excinfo.value.stderr == "warning in caf\ufffd.rs"
