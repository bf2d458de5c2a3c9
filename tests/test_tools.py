"""
Tests for external tool plumbing.
"""

import asyncio
import sys
import time

import pytest

from doc_pipeline import tools
from doc_pipeline.exceptions import ExtractionFailedError, ToolNotFoundError
from doc_pipeline.tools import (
    CommandResult,
    locate_command,
    remove_path,
    require_command,
    run_command,
    run_extraction_command,
    temporary_directory,
    temporary_file,
)


class TestLocateCommand:
    """Tests for command lookup."""

    def test_env_override(self, monkeypatch, tmp_path):
        """Test that an existing path in the environment variable wins."""
        binary = tmp_path / "pdf2txt.py"
        binary.write_text("")
        monkeypatch.setenv("PDF2TXT_CMD", str(binary))
        assert locate_command(["definitely-not-installed"], env_var="PDF2TXT_CMD") == str(binary)

    def test_missing(self, monkeypatch):
        """Test that an unknown command is not found."""
        monkeypatch.delenv("PDF2TXT_CMD", raising=False)
        assert locate_command(["definitely-not-installed-tool"], env_var="PDF2TXT_CMD") is None
        with pytest.raises(ToolNotFoundError) as exc_info:
            require_command(["definitely-not-installed-tool"])
        assert exc_info.value.tool == "definitely-not-installed-tool"


class TestRunCommand:
    """Tests for running subprocesses."""

    def test_exit_code(self):
        """Test that the exit status is reported."""
        result = asyncio.run(run_command([sys.executable, "-c", "import sys; print('hi'); sys.exit(3)"]))
        assert result.returncode == 3
        assert not result.ok
        assert result.stdout.strip() == "hi"

    def test_missing_executable(self, tmp_path):
        """Test that a missing executable is ToolNotFoundError."""
        with pytest.raises(ToolNotFoundError):
            asyncio.run(run_command([str(tmp_path / "nope")]))

    def test_timeout_kills_process(self):
        """Test that a command exceeding its timeout is killed."""
        start = time.time()
        with pytest.raises(ExtractionFailedError):
            asyncio.run(run_command([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5))
        assert time.time() - start < 10

    def test_cancellation_kills_process(self):
        """Test that cancelling the awaiting task tears the process down."""

        async def scenario():
            task = asyncio.create_task(
                run_command([sys.executable, "-c", "import time; time.sleep(30)"])
            )
            await asyncio.sleep(0.5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        start = time.time()
        asyncio.run(scenario())
        assert time.time() - start < 10


class TestRunExtractionCommand:
    """Tests for the exit-code contract of extraction commands."""

    @pytest.mark.parametrize("code", [1, 2, 127])
    def test_non_zero_fails(self, monkeypatch, code):
        """Test that any non-zero exit raises ExtractionFailedError."""
        async def fake(command, timeout=None):
            return CommandResult(tuple(command), code, "", "bad input")

        monkeypatch.setattr(tools, "run_command", fake)
        with pytest.raises(ExtractionFailedError) as exc_info:
            asyncio.run(run_extraction_command(["/usr/bin/pdf2txt.py", "x.pdf"]))
        assert exc_info.value.exit_code == code
        assert exc_info.value.tool == "pdf2txt.py"
        assert exc_info.value.stderr == "bad input"

    def test_zero_succeeds(self, monkeypatch):
        """Test that a zero exit returns the result."""
        async def fake(command, timeout=None):
            return CommandResult(tuple(command), 0, "ok", "")

        monkeypatch.setattr(tools, "run_command", fake)
        result = asyncio.run(run_extraction_command(["pdf2txt.py"]))
        assert result.stdout == "ok"


class TestTemporaryPaths:
    """Tests for per-run temporary files."""

    def test_file_lifecycle(self):
        """Test creating and removing a temporary file."""
        path = temporary_file(".xml")
        assert path.exists()
        assert path.suffix == ".xml"
        remove_path(path)
        assert not path.exists()
        remove_path(path)

    def test_directory_lifecycle(self):
        """Test creating and removing a temporary directory with content."""
        path = temporary_directory()
        (path / "img.png").write_bytes(b"x")
        remove_path(path)
        assert not path.exists()

    def test_remove_none(self):
        """Test that removing nothing is a no-op."""
        remove_path(None)
