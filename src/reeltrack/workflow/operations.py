"""Pure helpers implementing the workflow lifecycle rules."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import AbstractSet, Optional, TypeVar

from reeltrack.errors import ErrorInfo

from .models import NoWorkflow, SubmittableWorkflow, Workflow

LOGGER = logging.getLogger(__name__)

W = TypeVar("W", bound=SubmittableWorkflow)
K = TypeVar("K")


def open_workflow(current: Workflow, new: Workflow) -> Workflow:
    """Replace ``current`` with ``new`` unless ``current`` is mid-submit.

    Partial input of the replaced workflow is discarded.
    """
    if current.submitting:
        LOGGER.debug("Ignoring open of %s while %s is submitting", type(new).__name__, type(current).__name__)
        return current
    return new


def close_workflow(current: Workflow) -> Workflow:
    """Close ``current``; ignored while a submission is in flight."""
    if current.submitting:
        LOGGER.debug("Ignoring close of %s during submission", type(current).__name__)
        return current
    return NoWorkflow()


def begin_submit(workflow: W) -> W:
    return replace(workflow, submitting=True, error=None)


def submit_failed(workflow: W, error: ErrorInfo) -> W:
    return replace(workflow, submitting=False, error=error)


def reject(workflow: W, error: ErrorInfo) -> W:
    """Record a validation error without starting a submission."""
    return replace(workflow, submitting=False, error=error)


def toggle_member(selection: AbstractSet[K], item: K) -> frozenset[K]:
    """Add ``item`` to ``selection`` or remove it when already present."""
    if item in selection:
        return frozenset(selection) - {item}
    return frozenset(selection) | {item}


def validate_name(value: str, *, label: str) -> Optional[ErrorInfo]:
    """Return a validation error when ``value`` is blank."""
    if not value.strip():
        return ErrorInfo.validation(f"{label} is required")
    return None


def optional_text(value: str) -> Optional[str]:
    """Return the trimmed text, or ``None`` when it is blank."""
    stripped = value.strip()
    return stripped or None


__all__ = [
    "begin_submit",
    "close_workflow",
    "open_workflow",
    "optional_text",
    "reject",
    "submit_failed",
    "toggle_member",
    "validate_name",
]
