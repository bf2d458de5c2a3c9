"""
External tool plumbing.

Every external command is located with `locate_command` and run through
`run_command`, a cancellable coroutine: when the surrounding task is
cancelled (e.g. by the orchestrator's timeout) the child process is killed
and reaped before the cancellation propagates.

Intermediate files live in per-run temporary paths created here and are
removed by their consuming stage.

Environment (optional):
    PDF2TXT_CMD: Path to pdfminer's pdf2txt.py
    DUMPPDF_CMD: Path to pdfminer's dumppdf.py
    TESSERACT_CMD: Path to the tesseract binary
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import fitz  # PyMuPDF

from .exceptions import ExtractionFailedError, ToolNotFoundError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "doc_pipeline_"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished external command."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def locate_command(names: Sequence[str], env_var: Optional[str] = None) -> Optional[str]:
    """
    Find the first available command among `names`.

    An environment variable, when set and pointing to an existing file,
    takes precedence over the PATH lookup.
    """
    if env_var:
        override = os.environ.get(env_var)
        if override and Path(override).exists():
            logger.debug(f"{names[0]} taken from ${env_var}: {override}")
            return override

    for name in names:
        location = shutil.which(name)
        if location:
            logger.debug(f"{name} was found at {location}")
            return location

    logger.debug(f"Unable to find {names[0]} on the system. Are you sure it is installed?")
    return None


def require_command(names: Sequence[str], env_var: Optional[str] = None) -> str:
    location = locate_command(names, env_var)
    if location is None:
        raise ToolNotFoundError(names[0])
    return location


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()


async def run_command(
    command: Sequence[str],
    timeout: Optional[float] = None,
) -> CommandResult:
    """
    Run an external command to completion.

    Raises:
        ToolNotFoundError: if the executable does not exist
        ExtractionFailedError: if `timeout` elapses (the process is killed)
    """
    command = tuple(str(part) for part in command)
    logger.debug(" ".join(command))

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(command[0]) from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        await _terminate(process)
        raise ExtractionFailedError(
            tool=Path(command[0]).name,
            exit_code=process.returncode,
            stderr=f"Killed after {timeout}s timeout",
        ) from None
    except BaseException:
        # Cancelled by the caller: never leave the child orphaned.
        await _terminate(process)
        raise

    result = CommandResult(
        command=command,
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if result.stderr.strip():
        logger.error(f"{Path(command[0]).name} error: {result.stderr.strip()}")
    return result


async def run_extraction_command(
    command: Sequence[str],
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run a command whose non-zero exit is an ExtractionFailedError."""
    result = await run_command(command, timeout=timeout)
    if not result.ok:
        raise ExtractionFailedError(
            tool=Path(result.command[0]).name,
            exit_code=result.returncode,
            stderr=result.stderr,
        )
    return result


def temporary_file(suffix: str) -> Path:
    """Create an empty per-run temporary file and return its path."""
    fd, name = tempfile.mkstemp(suffix=suffix, prefix=TEMP_PREFIX)
    os.close(fd)
    return Path(name)


def temporary_directory() -> Path:
    return Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))


def remove_path(path: Optional[Path]) -> None:
    """Remove a temporary file or directory, ignoring ones already gone."""
    if path is None:
        return
    try:
        if path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
        else:
            path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(f"Could not remove temporary path {path}: {exc}")


def repair_pdf(pdf_path: Path) -> Optional[Path]:
    """
    Clean a PDF (garbage collection, stream cleanup) into a temporary file.

    Encrypted files that open with an empty password are written decrypted.

    Returns:
        Path to the repaired copy, or None if the file could not be repaired
    """
    output = temporary_file(".pdf")
    try:
        with fitz.open(pdf_path) as doc:
            if doc.needs_pass and not doc.authenticate(""):
                logger.warning(f"{pdf_path} is password protected; skipping repair.")
                remove_path(output)
                return None
            doc.save(
                output,
                garbage=3,
                clean=True,
                deflate=True,
                encryption=fitz.PDF_ENCRYPT_NONE,
            )
    except (RuntimeError, ValueError) as exc:
        logger.warning(f"Could not repair {pdf_path}, extracting from the original: {exc}")
        remove_path(output)
        return None

    logger.debug(f"Repaired PDF written to {output}")
    return output
