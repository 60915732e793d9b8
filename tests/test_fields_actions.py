"""
Tests for writing HTML into destination fields and actions.
"""

from daggerheart_sync.merge.actions import (
    DetailedAction,
    PlainAction,
    action_description,
    read_action,
    set_action_html,
    translate_action_names,
    write_action,
)
from daggerheart_sync.merge.fields import ensure_html_fragment, merge_html, set_html_field


class TestSetHtmlField:
    """Tests for set_html_field."""

    def test_sets_new_value(self):
        """A source paragraph replaces an unrelated old description."""
        entry = {"name": "Bard", "description": "<p>Old</p>"}
        set_html_field(entry, "description", "<p>Тестовое описание.</p>")
        assert entry == {"name": "Bard", "description": "<p>Тестовое описание.</p>"}

    def test_none_removes_key(self):
        entry = {"description": "<p>Old</p>"}
        set_html_field(entry, "description", None)
        assert "description" not in entry

    def test_invisible_content_removes_key(self):
        entry = {"description": "<p>Old</p>"}
        set_html_field(entry, "description", "<p> </p>")
        assert "description" not in entry

    def test_same_text_keeps_existing_markup(self):
        """Markup-only differences never rewrite the stored value."""
        entry = {"description": "<p>Hello <em>world</em></p>"}
        set_html_field(entry, "description", "<p>Hello world</p>")
        assert entry["description"] == "<p>Hello <em>world</em></p>"

    def test_same_text_drops_existing_links(self):
        entry = {"description": '<p><a href="x">Hello</a></p>'}
        set_html_field(entry, "description", "<p>Hello</p>")
        assert entry["description"] == "<p>Hello</p>"

    def test_link_cleanup_keeps_secret_section(self):
        """Dropping a link from the stored value leaves the secret marker in place."""
        entry = {"description": '<p><a href="x">Hello</a></p><section class="secret"><p>GM only</p></section>'}
        set_html_field(entry, "description", "<p>Hello</p>")
        assert entry["description"] == '<p>Hello</p><section class="secret"><p>GM only</p></section>'

    def test_rolls_with_shared_expression_unchanged(self):
        old = "<p>Урон [[/r 1d6+2]], затем [[/r 1d6]].</p>"
        entry = {"description": old}
        set_html_field(entry, "description", "<p>Урон 1d6+2, затем 1d6.</p>")
        assert entry["description"] == old

    def test_merge_html_returns_previous_value_untouched(self):
        old = '<section class="secretive"><p><em>Hidden</em> <em>text</em></p></section>'
        assert merge_html(old, "<p>Hidden text</p>") == old

    def test_directive_survives_new_text(self):
        entry = {"description": "<p>Old text</p><p>@Template[type:line|range:f]</p>"}
        set_html_field(entry, "description", "<p>Новый текст</p>")
        assert entry["description"] == "<p>Новый текст</p><p>@Template[type:line|range:f]</p>"

    def test_rerun_is_stable(self):
        """Applying the same source text twice gives the same value."""
        entry = {"description": "<p>Roll [[/r 1d6]] now</p>"}
        set_html_field(entry, "description", "<p>Бросьте 1d6 сейчас</p>")
        first = entry["description"]
        set_html_field(entry, "description", "<p>Бросьте 1d6 сейчас</p>")
        assert entry["description"] == first == "<p>Бросьте [[/r 1d6]] сейчас</p>"

    def test_merge_html_of_empty_input(self):
        assert merge_html("<p>x</p>", "") == ""


class TestEnsureHtmlFragment:
    """Tests for ensure_html_fragment."""

    def test_suffix_added_once(self):
        once = ensure_html_fragment("<p>a</p>", "<p>b</p>", "suffix")
        assert once == "<p>a</p><p>b</p>"
        assert ensure_html_fragment(once, "<p>b</p>", "suffix") == once

    def test_prefix(self):
        assert ensure_html_fragment("<p>a</p>", "<p>b</p>", "prefix") == "<p>b</p><p>a</p>"

    def test_plain_text_containment(self):
        """Text already present with other markup is not added again."""
        assert ensure_html_fragment("<p><strong>b</strong></p>", "<p>b</p>", "prefix") == "<p><strong>b</strong></p>"


class TestReadAction:
    """Tests for the action value union."""

    def test_plain(self):
        action = read_action("<p>x</p>")
        assert isinstance(action, PlainAction)
        assert action.description == "<p>x</p>"

    def test_detailed(self):
        action = read_action({"name": "Cast", "description": "<p>y</p>"})
        assert isinstance(action, DetailedAction)
        assert action.name == "Cast"
        assert action.description == "<p>y</p>"

    def test_unknown_shape(self):
        assert read_action(5) is None
        assert action_description(None) == ""


class TestSetActionHtml:
    """Tests for set_action_html and write_action."""

    def test_detailed_action_keeps_other_fields(self):
        actions = {"a": {"name": "Attack", "description": "<p>Old</p>", "type": "attack"}}
        set_action_html(actions, "a", "<p>New</p>")
        assert actions == {"a": {"name": "Attack", "description": "<p>New</p>", "type": "attack"}}

    def test_missing_action_created_as_string(self):
        actions = {}
        set_action_html(actions, "a", "<p>New</p>")
        assert actions == {"a": "<p>New</p>"}

    def test_none_removes_action(self):
        actions = {"a": "<p>Old</p>"}
        set_action_html(actions, "a", None)
        assert actions == {}

    def test_write_action_is_verbatim(self):
        """Override text is stored as given, without merging."""
        actions = {"a": "<p>Old [[/r 1d6]]</p>", "b": 5}
        write_action(actions, "a", "<p>Fixed</p>")
        write_action(actions, "b", "<p>Fixed</p>")
        assert actions == {"a": "<p>Fixed</p>", "b": {"description": "<p>Fixed</p>"}}


class TestTranslateActionNames:
    """Tests for translate_action_names."""

    def test_known_names_translated(self):
        actions = {"a": {"name": " Mark Stress ", "description": "x"}, "b": {"name": "Other"}, "c": "<p>x</p>"}
        translate_action_names(actions, {"mark stress": "Отметить Стресс"})
        assert actions["a"]["name"] == "Отметить Стресс"
        assert actions["b"]["name"] == "Other"
        assert actions["c"] == "<p>x</p>"
