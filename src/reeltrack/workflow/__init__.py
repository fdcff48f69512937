"""Mutually exclusive user workflows and their submission lifecycle."""

from .models import (
    AbandonWorkflow,
    ConfirmDeleteWorkflow,
    DeleteEntry,
    DeleteFriend,
    DeleteTag,
    DeleteTarget,
    FriendFormWorkflow,
    NoWorkflow,
    QuickAddWorkflow,
    SearchWorkflow,
    SubmittableWorkflow,
    TagFormWorkflow,
    Workflow,
)
from .operations import (
    begin_submit,
    close_workflow,
    open_workflow,
    optional_text,
    reject,
    submit_failed,
    toggle_member,
    validate_name,
)

__all__ = [
    "AbandonWorkflow",
    "ConfirmDeleteWorkflow",
    "DeleteEntry",
    "DeleteFriend",
    "DeleteTag",
    "DeleteTarget",
    "FriendFormWorkflow",
    "NoWorkflow",
    "QuickAddWorkflow",
    "SearchWorkflow",
    "SubmittableWorkflow",
    "TagFormWorkflow",
    "Workflow",
    "begin_submit",
    "close_workflow",
    "open_workflow",
    "optional_text",
    "reject",
    "submit_failed",
    "toggle_member",
    "validate_name",
]
