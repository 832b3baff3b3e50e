"""Structured error types with recovery suggestions.

The detection engine is total over well-formed trees, so the taxonomy is
small: malformed trees and node records fail fast with a validation error,
bad configuration raises a configuration error, and the CLI reports
unreadable input files. Every error carries an exit code so the CLI can
terminate consistently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Categories of inspector errors for organization and handling."""

    VALIDATION = "validation"  # Malformed tree or node record
    CONFIGURATION = "configuration"  # Invalid config file or values
    INPUT = "input"  # Unreadable or unparsable input file
    RUNTIME = "runtime"  # Unexpected errors


@dataclass(eq=False)
class InspectorError(Exception):
    """Base class for structured errors with recovery suggestions.

    Attributes:
        category: Error category for grouping.
        message: Human-readable error message.
        suggestion: Optional actionable recovery suggestion.
        details: Optional additional details dict.
        exit_code: Exit code to use when this error causes termination.
    """

    category: ErrorCategory
    message: str
    suggestion: str | None = None
    details: dict[str, Any] | None = field(default_factory=dict)
    exit_code: int = 1

    def __post_init__(self) -> None:
        """Initialize the exception with the message."""
        super().__init__(self.message)

    def format(self, use_color: bool = True) -> str:
        """Format the error for display.

        Args:
            use_color: Whether to include ANSI color codes.

        Returns:
            Formatted error string with suggestion if available.
        """
        red = "\033[91m" if use_color else ""
        cyan = "\033[96m" if use_color else ""
        dim = "\033[2m" if use_color else ""
        reset = "\033[0m" if use_color else ""

        lines = [f"{red}Error:{reset} {self.message}"]

        if self.suggestion:
            lines.append(f"{cyan}Suggestion:{reset} {self.suggestion}")

        if self.details:
            for key, value in self.details.items():
                lines.append(f"{dim}  {key}: {value}{reset}")

        return "\n".join(lines)

    def __str__(self) -> str:
        """Return the formatted error message."""
        return self.format(use_color=False)


class TreeValidationError(InspectorError):
    """A node tree violates the structural invariants of the node schema."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            category=ErrorCategory.VALIDATION,
            message=message,
            suggestion=suggestion or "Every node id must be unique and the tree acyclic",
            details=details,
            exit_code=2,
        )


class DuplicateNodeIdError(TreeValidationError):
    """The same node id was found more than once during traversal."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(
            message=f"Duplicate node id: {node_id}",
            suggestion="Assign a unique id to every node in the tree",
            details={"node_id": node_id},
        )


class DanglingChildError(TreeValidationError):
    """A child reference points at an id with no node attributes."""

    def __init__(self, parent_id: str, child_id: str):
        self.parent_id = parent_id
        self.child_id = child_id
        super().__init__(
            message=f"Node {parent_id} references unknown child {child_id}",
            suggestion="Remove the reference or add the missing node",
            details={"parent_id": parent_id, "child_id": child_id},
        )


class CyclicTreeError(TreeValidationError):
    """A node was reached again through its own descendants."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(
            message=f"Cycle detected at node {node_id}",
            suggestion="A node must not be its own ancestor",
            details={"node_id": node_id},
        )


class NodeFormatError(InspectorError):
    """A node record cannot be converted into a Node."""

    def __init__(self, message: str, node_id: str | None = None):
        super().__init__(
            category=ErrorCategory.VALIDATION,
            message=message,
            suggestion=(
                "Nodes need an id, a type of Div, Input, Image or Button, "
                "and non-negative numeric dimensions"
            ),
            details={"node_id": node_id} if node_id else None,
            exit_code=2,
        )


class ConfigurationError(InspectorError):
    """Error in configuration file or settings."""

    def __init__(
        self,
        message: str,
        config_file: str | None = None,
        suggestion: str | None = None,
    ):
        default_suggestion = "Check your configuration file syntax and value ranges"
        super().__init__(
            category=ErrorCategory.CONFIGURATION,
            message=message,
            suggestion=suggestion or default_suggestion,
            details={"config_file": config_file} if config_file else None,
            exit_code=1,
        )


class InputFileError(InspectorError):
    """A tree file could not be read or parsed."""

    def __init__(self, message: str, file_path: str | None = None):
        super().__init__(
            category=ErrorCategory.INPUT,
            message=message,
            suggestion="Pass a readable JSON file containing a single root node",
            details={"file": file_path} if file_path else None,
            exit_code=1,
        )


def handle_exception(
    error: Exception,
    use_color: bool = True,
    verbose: bool = False,
) -> tuple[str, int]:
    """Convert any exception to formatted output and exit code.

    Args:
        error: The exception to handle.
        use_color: Whether to use color in output.
        verbose: Whether to include full traceback.

    Returns:
        Tuple of (formatted_message, exit_code).
    """
    import traceback

    if isinstance(error, InspectorError):
        message = error.format(use_color=use_color)
        exit_code = error.exit_code
    else:
        red = "\033[91m" if use_color else ""
        reset = "\033[0m" if use_color else ""
        message = f"{red}Error:{reset} {str(error)}"
        exit_code = 1

    if verbose:
        message += "\n\nTraceback:\n" + traceback.format_exc()

    return message, exit_code
