"""
Custom Exceptions for the Document Pipeline.

This module defines a hierarchy of exceptions for precise error handling
across extraction backends, cleaner modules and the orchestrator.

Exception Hierarchy:
    PipelineError (base)
    ├── InputError
    │   ├── InputNotFoundError
    │   └── UnsupportedInputError
    ├── ToolError
    │   ├── ToolNotFoundError
    │   ├── ExtractionFailedError
    │   └── MalformedToolOutputError
    ├── ModuleError
    │   ├── UnknownModuleError
    │   └── ModuleTransformError
    └── PipelineTimeoutError

Propagation:
    - Primary extraction failures (ToolNotFoundError for the extraction
      binary, ExtractionFailedError) abort the run.
    - Auxiliary features (link metadata, nested image OCR) catch ToolError,
      log it and continue with zero results.
    - ModuleTransformError aborts the remaining cleaner chain.

Usage:
    from doc_pipeline.exceptions import (
        PipelineError,
        ExtractionFailedError,
    )

    try:
        document = orchestrator.run_sync("document.pdf")
    except ExtractionFailedError as e:
        print(f"{e.tool} exited with {e.exit_code}")
    except PipelineError as e:
        print(f"Pipeline failed: {e}")
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class PipelineError(Exception):
    """
    Base exception for all pipeline-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A pipeline error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


# =============================================================================
# INPUT ERRORS
# =============================================================================


class InputError(PipelineError):
    """Base class for input file errors."""

    def __init__(
        self,
        message: str = "Input error",
        path: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.path = path
        if path:
            message = f"{message} [{path}]"
        super().__init__(message, details)


class InputNotFoundError(InputError):
    """Raised when the input file cannot be found."""

    def __init__(self, path: str):
        super().__init__(message="Input file not found", path=path)


class UnsupportedInputError(InputError):
    """
    Raised when no extraction backend handles the input's file type.

    Attributes:
        path: Path to the input file
        suffix: The unsupported file extension
    """

    def __init__(self, path: str, suffix: str):
        self.suffix = suffix
        super().__init__(
            message=f"No extractor available for '{suffix or '<none>'}' files",
            path=path,
        )


# =============================================================================
# EXTERNAL TOOL ERRORS
# =============================================================================


class ToolError(PipelineError):
    """
    Base class for errors raised around external tools.

    Attributes:
        tool: Name of the external command (e.g. "pdf2txt.py")
    """

    def __init__(
        self,
        message: str = "External tool error",
        tool: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.tool = tool
        super().__init__(message, details)


class ToolNotFoundError(ToolError):
    """
    Raised when an external command cannot be located on the system.

    Fatal for primary extraction, degraded to "no results" by
    auxiliary features.
    """

    def __init__(self, tool: str, details: Optional[str] = None):
        super().__init__(
            message=f"Unable to find '{tool}' on the system. Is it installed?",
            tool=tool,
            details=details,
        )


class ExtractionFailedError(ToolError):
    """
    Raised when an extraction subprocess exits with a non-zero status.

    Attributes:
        exit_code: The process exit status
        stderr: Tail of the process standard error, if captured
    """

    def __init__(
        self,
        tool: str,
        exit_code: int,
        stderr: Optional[str] = None,
    ):
        self.exit_code = exit_code
        self.stderr = stderr
        details = stderr[-500:] if stderr else None
        super().__init__(
            message=f"{tool} return code is {exit_code}",
            tool=tool,
            details=details,
        )


class MalformedToolOutputError(ToolError):
    """
    Raised when a tool's output cannot be parsed or lacks expected keys.

    Caught at the boundary of the affected auxiliary feature and
    downgraded to "no results for this feature".
    """

    def __init__(
        self,
        message: str = "Malformed tool output",
        tool: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message, tool=tool, details=details)


# =============================================================================
# MODULE ERRORS
# =============================================================================


class ModuleError(PipelineError):
    """Base class for cleaner module errors."""

    def __init__(
        self,
        message: str = "Module error",
        module_name: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.module_name = module_name
        super().__init__(message, details)


class UnknownModuleError(ModuleError):
    """Raised when the configuration names a module that is not registered."""

    def __init__(self, module_name: str):
        super().__init__(
            message=f"Unknown cleaner module: {module_name}",
            module_name=module_name,
        )


class ModuleTransformError(ModuleError):
    """
    Raised when a cleaner module fails while transforming a document.

    The remaining chain is aborted and the partial document is not
    delivered downstream.

    Attributes:
        module_name: Name of the failing module
        original_error: The exception raised by the module
    """

    def __init__(
        self,
        module_name: str,
        original_error: Optional[Exception] = None,
    ):
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(
            message=f"Module '{module_name}' failed",
            module_name=module_name,
            details=details,
        )


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class PipelineTimeoutError(PipelineError):
    """
    Raised when a whole orchestrator run exceeds its time budget.

    Attributes:
        timeout_seconds: The configured timeout
    """

    def __init__(self, timeout_seconds: float, path: Optional[str] = None):
        self.timeout_seconds = timeout_seconds
        self.path = path
        message = f"Pipeline run timed out after {timeout_seconds}s"
        if path:
            message = f"{message} [{path}]"
        super().__init__(message)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def is_auxiliary_failure(error: BaseException) -> bool:
    """
    Check if an error may be swallowed by an auxiliary feature.

    Returns True for missing or failing tools, malformed output, unreadable
    inputs and file system errors. Returns False for everything else,
    including module failures and timeouts.
    """
    return isinstance(error, (ToolError, InputError, OSError))


def format_error_chain(error: Exception) -> str:
    """
    Format an exception and its chain for logging.

    Returns a multi-line string showing the error hierarchy.
    """
    lines = []
    current = error
    depth = 0

    while current is not None:
        prefix = "  " * depth + ("└─ " if depth > 0 else "")
        lines.append(f"{prefix}{type(current).__name__}: {current}")

        if getattr(current, "original_error", None):
            current = current.original_error
            depth += 1
        elif current.__cause__:
            current = current.__cause__
            depth += 1
        else:
            break

    return "\n".join(lines)
