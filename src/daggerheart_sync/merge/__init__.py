"""Merging refreshed source text into existing destination entries."""

from .actions import DetailedAction, PlainAction, get_action_html, read_action, set_action_html
from .fields import ensure_html_fragment, set_html_field
from .splitter import ActionSplitter, SplitRequest, distribute_actions
from .splitters import DOMAIN_SPLITTERS
from .tags import Placement, TagMergeResult, merge_directives

__all__ = [
    "DetailedAction",
    "PlainAction",
    "get_action_html",
    "read_action",
    "set_action_html",
    "ensure_html_fragment",
    "set_html_field",
    "ActionSplitter",
    "SplitRequest",
    "distribute_actions",
    "DOMAIN_SPLITTERS",
    "Placement",
    "TagMergeResult",
    "merge_directives",
]
