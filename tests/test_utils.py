"""Unit tests for utility functions (aikforge.utils).

Tests cover:
- run_command (success, failure, timeout, list vs string, env vars, missing or
  non-executable binary)
- write_project (nested paths, refusal to escape the output directory)
- format_duration
- STAGE_COLORS constant
- Rich output helpers (print_stage_header, print_summary_table, etc.)
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from aikforge.scaffolder.models import GeneratedFile, GeneratedProject
from aikforge.utils import (
    STAGE_COLORS,
    CommandResult,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    write_project,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        result = await run_command([sys.executable, "-c", "print('hello')"])
        assert result.returncode == 0
        assert result.stdout == "hello"
        assert result.timed_out is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_string(self):
        result = await run_command("echo hello")
        assert result.returncode == 0
        assert "hello" in result.stdout

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_command(self):
        result = await run_command([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert result.returncode == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        result = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert result.returncode == 0
        assert Path(result.stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout(self):
        result = await run_command(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout=1
        )
        assert result.timed_out is True
        assert result.returncode == -1
        assert "timed out" in result.stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_env(self):
        result = await run_command(
            [sys.executable, "-c", "import os; print(os.environ['AIKFORGE_TEST_VAR'])"],
            env={"AIKFORGE_TEST_VAR": "test_value"},
        )
        assert result.returncode == 0
        assert result.stdout == "test_value"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_binary_returns_127(self):
        result = await run_command(["nonexistent-binary-12345-xyz", "--version"])
        assert result.returncode == 127
        assert "nonexistent-binary-12345-xyz" in result.stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    async def test_non_executable_binary_returns_126(self, tmp_path: Path):
        script = tmp_path / "aiken"
        script.write_text("#!/bin/sh\necho hi\n")
        script.chmod(0o400)

        result = await run_command([str(script), "build"])

        assert result.returncode == 126
        assert result.stderr.startswith(f"Cannot execute {script}")
        assert result.timed_out is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_spawn_os_error_is_reported(self):
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=OSError(8, "Exec format error")),
        ):
            result = await run_command(["aiken", "build"])
        assert result.returncode == 126
        assert "Exec format error" in result.stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stderr_captured(self):
        result = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('error_msg\\n')"]
        )
        assert result.stderr == "error_msg"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mocked_process_output_decoded(self, mock_subprocess):
        proc = mock_subprocess(stdout="  built  ", stderr="warn", returncode=0)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            result = await run_command(["aiken", "build"])
        assert isinstance(result, CommandResult)
        assert result.stdout == "built"
        assert result.stderr == "warn"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mocked_timeout_kills_process(self, mock_subprocess):
        proc = mock_subprocess()
        proc.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            result = await run_command(["aiken", "check"], timeout=5)
        proc.kill.assert_called_once()
        proc.wait.assert_awaited()
        assert result.timed_out is True
        assert "aiken check" in result.stderr


# ---------------------------------------------------------------------------
# write_project
# ---------------------------------------------------------------------------


class TestWriteProject:
    @pytest.mark.unit
    def test_writes_nested_files(self, tmp_path: Path):
        project = GeneratedProject(
            template="custom",
            files=[
                GeneratedFile(path="aiken.toml", content='name = "a/b"\n'),
                GeneratedFile(path="lib/a/b/types.ak", content="pub type T {\n  A\n}\n"),
            ],
        )
        written = write_project(project, tmp_path / "out")

        assert [p.name for p in written] == ["aiken.toml", "types.ak"]
        assert (tmp_path / "out" / "lib" / "a" / "b" / "types.ak").read_text() == "pub type T {\n  A\n}\n"

    @pytest.mark.unit
    def test_refuses_paths_outside_root(self, tmp_path: Path):
        escaping = GeneratedFile.model_construct(path="../escape.txt", content="x")
        project = GeneratedProject.model_construct(
            template="custom",
            files=[GeneratedFile(path="ok.txt", content="ok"), escaping],
        )
        with pytest.raises(ValueError, match="outside"):
            write_project(project, tmp_path / "out")
        # Nothing is written when any path is rejected
        assert not (tmp_path / "out" / "ok.txt").exists()
        assert not (tmp_path / "escape.txt").exists()


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_zero(self):
        assert format_duration(0) == "0.0s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-5) == "0.0s"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------


class TestStageColors:
    @pytest.mark.unit
    def test_every_stage_has_a_color(self):
        assert set(STAGE_COLORS) == {"compile", "test", "scan"}


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    @pytest.mark.unit
    def test_print_stage_header(self):
        with patch("aikforge.utils.console") as mock_console:
            print_stage_header("compile")
            mock_console.print.assert_called_once()

    @pytest.mark.unit
    def test_print_stage_header_unknown_stage(self):
        with patch("aikforge.utils.console") as mock_console:
            print_stage_header("deploy")
            mock_console.print.assert_called_once()

    @pytest.mark.unit
    def test_print_summary_table(self):
        with patch("aikforge.utils.console") as mock_console:
            print_summary_table({"Template": "vesting", "Files": "3"}, title="Generation Summary")
            mock_console.print.assert_called_once()

    @pytest.mark.unit
    def test_print_success(self):
        with patch("aikforge.utils.console") as mock_console:
            print_success("done")
            assert "done" in mock_console.print.call_args[0][0]

    @pytest.mark.unit
    def test_print_error(self):
        with patch("aikforge.utils.console") as mock_console:
            print_error("failed")
            assert "failed" in mock_console.print.call_args[0][0]

    @pytest.mark.unit
    def test_print_warning(self):
        with patch("aikforge.utils.console") as mock_console:
            print_warning("careful")
            assert "careful" in mock_console.print.call_args[0][0]
