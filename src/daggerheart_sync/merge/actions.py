"""
Action values of destination entries.

An action is stored either as a bare HTML string or as an object with a
``description`` key next to other fields (name, type, ...).  Both shapes are
read into ``PlainAction``/``DetailedAction`` and written back in the shape
they came in, so fields other than the description survive a refresh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, MutableMapping, Union

from .fields import set_html_field


@dataclass(frozen=True)
class PlainAction:
    html: str

    @property
    def description(self) -> str:
        return self.html

    def with_description(self, html: str) -> "PlainAction":
        return PlainAction(html)

    def to_json(self) -> str:
        return self.html


@dataclass(frozen=True)
class DetailedAction:
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def description(self) -> str:
        value = self.data.get("description")
        return value if isinstance(value, str) else ""

    @property
    def name(self) -> str | None:
        value = self.data.get("name")
        return value if isinstance(value, str) else None

    def with_description(self, html: str) -> "DetailedAction":
        return DetailedAction({**self.data, "description": html})

    def to_json(self) -> dict[str, Any]:
        return dict(self.data)


Action = Union[PlainAction, DetailedAction]


def read_action(value: Any) -> Action | None:
    """Interpret a raw JSON action value; unknown shapes give None."""
    if isinstance(value, str):
        return PlainAction(value)
    if isinstance(value, dict):
        return DetailedAction(value)
    return None


def action_description(value: Any) -> str:
    action = read_action(value)
    return action.description if action is not None else ""


def get_action_html(actions: MutableMapping[str, Any] | None, action_id: str) -> str:
    if not actions or not action_id or action_id not in actions:
        return ""
    return action_description(actions[action_id])


def set_action_html(actions: MutableMapping[str, Any] | None, action_id: str, html: str | None) -> None:
    """Update an action's description through ``set_html_field``.

    The action keeps its shape; a missing action is created as plain HTML.
    Empty content removes the action.
    """
    if actions is None or not action_id:
        return
    if html is None:
        actions.pop(action_id, None)
        return

    carrier = {"value": get_action_html(actions, action_id)}
    set_html_field(carrier, "value", html)
    processed = carrier.get("value")
    if not processed:
        actions.pop(action_id, None)
        return
    write_action(actions, action_id, processed)


def write_action(actions: MutableMapping[str, Any], action_id: str, html: str) -> None:
    """Store ``html`` as the action's description verbatim."""
    existing = read_action(actions.get(action_id))
    if existing is not None:
        actions[action_id] = existing.with_description(html).to_json()
    elif action_id in actions:
        actions[action_id] = {"description": html}
    else:
        actions[action_id] = html


def translate_action_names(actions: MutableMapping[str, Any] | None, names: dict[str, str]) -> None:
    """Replace English action names that have a fixed translation."""
    if not actions:
        return
    for action_id, value in list(actions.items()):
        action = read_action(value)
        if not isinstance(action, DetailedAction) or action.name is None:
            continue
        translated = names.get(action.name.strip().lower())
        if translated:
            actions[action_id] = {**action.data, "name": translated}
