"""
Tests for the manual override tables.
"""

import pytest

from daggerheart_sync.exceptions import OverrideConfigError
from daggerheart_sync.overrides import OverrideTables, default_overrides, load_overrides
from daggerheart_sync.overrides.models import resolve_alias


class TestLoadOverrides:
    """Tests for loading the YAML tables."""

    def test_bundled_tables(self):
        tables = default_overrides()
        assert tables.aliases.subclass["comaraderie"] == "camaraderie"
        assert tables.class_items["Torch"].name == "Факел"
        assert tables.labels["daggerheart.ancestries.json"] == "Родословные"
        assert 147 in tables.bullet_action_features
        assert tables.legacy_ancestry_keys == frozenset({"Fearless", "Unshakeable"})

    def test_bundled_tables_are_cached(self):
        assert default_overrides() is default_overrides()

    def test_tables_are_read_only(self):
        """Mappings cannot be changed after loading."""
        tables = default_overrides()
        with pytest.raises(TypeError):
            tables.labels["daggerheart.loot.json"] = "Добыча"
        with pytest.raises(TypeError):
            tables.aliases.feature["x"] = "y"

    def test_missing_file(self, tmp_path):
        with pytest.raises(OverrideConfigError, match="not found"):
            load_overrides(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("labels: [1, 2\n", encoding="utf-8")
        with pytest.raises(OverrideConfigError, match="not valid YAML"):
            load_overrides(path)

    def test_unknown_table(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("unknown_table: {}\n", encoding="utf-8")
        with pytest.raises(OverrideConfigError, match="Invalid overrides"):
            load_overrides(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("", encoding="utf-8")
        tables = load_overrides(path)
        assert tables.action_overrides == {}
        assert tables.other_potential_label == "Прочие"


class TestEntryPatches:
    """Tests for per-entry description patches."""

    def test_prefix_applied_once(self):
        tables = default_overrides()
        once = tables.patch_description("classes", "Bard", "<p>Описание.</p>")
        assert once.endswith("<p>Описание.</p>")
        assert once.startswith("<p><strong>Примечание:</strong>")
        assert tables.patch_description("classes", "Bard", once) == once

    def test_replacement_removes_paragraph(self):
        tables = default_overrides()
        paragraph = (
            "<p>В любой момент, когда вы найдете сообщество, частью которого вы когда-то были, "
            "или присоединитесь к новому сообществу, вы можете навсегда обменять эту карту сообщества на новую.</p>"
        )
        patched = tables.patch_description("communities", "Found Family", f"<p>Семья.</p>{paragraph}")
        assert patched == "<p>Семья.</p>"

    def test_unpatched_entry_unchanged(self):
        tables = default_overrides()
        assert tables.patch_description("classes", "Druid", "<p>x</p>") == "<p>x</p>"
        assert tables.patch_description("classes", "Bard", None) is None

    def test_patch_entry_touches_description_only_when_present(self):
        entry = {"name": "Бард"}
        default_overrides().patch_entry("classes", "Bard", entry)
        assert entry == {"name": "Бард"}


class TestLookups:
    """Tests for the small lookup helpers."""

    def test_translate_attack(self):
        tables = default_overrides()
        assert tables.translate_attack(" Attack ") == "Атака"
        assert tables.translate_attack("Bite") is None
        assert tables.translate_attack("  ") is None

    def test_resolve_alias(self):
        aliases = {"comaraderie": "camaraderie"}
        assert resolve_alias("comaraderie", aliases) == "camaraderie"
        assert resolve_alias("other", aliases) == "other"
        assert resolve_alias(None, aliases) is None

    def test_feature_sets(self):
        tables = OverrideTables(bullet_action_features=frozenset({147}), numbered_option_features=frozenset({1599}))
        assert tables.is_bullet_feature(147)
        assert not tables.is_bullet_feature(None)
        assert tables.is_numbered_option_feature(1599)
        assert not tables.is_numbered_option_feature(147)

    def test_domain_snippet(self):
        snippet = default_overrides().domain_snippet("Bare Bones")
        assert snippet.marker in snippet.html
        assert default_overrides().domain_snippet("Other") is None
