"""
End-to-end tests for the reconciliation run over a temporary project tree.
"""

import json

import pytest

from daggerheart_sync.config import API_ENDPOINTS, SyncConfig
from daggerheart_sync.exceptions import SourceCacheError
from daggerheart_sync.overrides import default_overrides
from daggerheart_sync.pipeline import TRANSLATION_FILES, detect_void_files, run_sync, void_file_key

SOURCES = {
    "class": (
        [{"slug": "bard", "name": "Bard", "description": "A bard.", "features": [{"id": 1, "name": "Rally", "main_body": "Give dice."}]}],
        [{"slug": "bard", "name": "Бард", "description": "Бард поёт.", "features": [{"id": 1, "name": "Сплочение", "main_body": "Дайте кости."}]}],
    ),
    "ancestry": (
        [{"slug": "elf", "name": "Elf", "short_description": "Tall."}],
        [{"slug": "elf", "name": "Эльф", "short_description": "Высокие."}],
    ),
    "domain-card": (
        [{"slug": "rune", "name": "Rune", "main_body": "Rune text."}],
        [{"slug": "rune", "name": "Руна", "main_body": "Текст руны."}],
    ),
}

DESTINATIONS = {
    "daggerheart.classes.json": {
        "label": "Классы",
        "entries": {
            "Bard": {"name": "Bard", "description": "<p>A bard.</p>"},
            "Rally": {"name": "Rally", "description": "<p>Give dice.</p>"},
            "Mystery": {"name": "Mystery"},
        },
    },
    "daggerheart.ancestries.json": {
        "label": "Ancestries",
        "entries": {"Elf": {"name": "Elf"}, "Fearless": {"name": "Fearless"}},
    },
    "daggerheart.domains.json": {
        "entries": {"Rune": {"name": "Rune", "description": "<p>Rune text.</p>", "actions": {"a": "<p>Rune text.</p>"}}},
    },
    "the-void-unofficial.classes.json": {"entries": {"Bard": {"name": "Bard"}}},
}


@pytest.fixture
def project(tmp_path, write_json):
    """Project tree with a complete API cache and every destination file."""
    cache_dir = tmp_path / "tmp_data" / "api"
    for endpoint in API_ENDPOINTS:
        english, russian = SOURCES.get(endpoint, ([], []))
        write_json(cache_dir / "en" / f"{endpoint}.json", {"data": english})
        write_json(cache_dir / "ru" / f"{endpoint}.json", {"data": russian})

    translations_dir = tmp_path / "module" / "translations"
    for file_name in TRANSLATION_FILES.values():
        write_json(translations_dir / file_name, {"label": "", "entries": {}})
    for file_name, data in DESTINATIONS.items():
        write_json(translations_dir / file_name, data)
    return tmp_path


def read_entries(project, file_name):
    path = project / "module" / "translations" / file_name
    return json.loads(path.read_text(encoding="utf-8"))


def snapshot_tree(project):
    translations_dir = project / "module" / "translations"
    return {path.name: path.read_text(encoding="utf-8") for path in sorted(translations_dir.iterdir())}


class TestVoidFiles:
    """Tests for third-party file discovery."""

    def test_void_file_key(self):
        assert void_file_key("classes") == "voidClasses"
        assert void_file_key("adversaries--environments") == "voidAdversaries--environments"

    def test_detect_void_files(self, tmp_path, write_json):
        write_json(tmp_path / "the-void-unofficial.domains.json", {"entries": {}})
        write_json(tmp_path / "the-void-unofficial.unknown.json", {"entries": {}})
        assert detect_void_files(tmp_path) == {"domains": tmp_path / "the-void-unofficial.domains.json"}


class TestRunSync:
    """Tests for run_sync."""

    @pytest.mark.anyio
    async def test_full_run(self, project):
        report = await run_sync(SyncConfig(base_dir=project), default_overrides())

        assert [stats.key for stats in report.files] == [*TRANSLATION_FILES, "voidClasses"]
        assert report.failed == []

        classes = {stats.key: stats for stats in report.files}["classes"]
        assert classes.total == 3
        assert classes.updated == 2
        assert classes.missing == ["Mystery"]

        entries = read_entries(project, "daggerheart.classes.json")["entries"]
        assert entries["Bard"]["name"] == "Бард"
        assert entries["Bard"]["description"].endswith("<p>Бард поёт.</p>")
        assert entries["Rally"] == {"name": "Сплочение", "description": "<p>Дайте кости.</p>"}

        domains = read_entries(project, "daggerheart.domains.json")["entries"]
        assert domains["Rune"] == {"name": "Руна", "description": "<p>Текст руны.</p>", "actions": {"a": "<p>Текст руны.</p>"}}

        void_classes = read_entries(project, "the-void-unofficial.classes.json")["entries"]
        assert void_classes["Bard"]["name"] == "Бард"

    @pytest.mark.anyio
    async def test_legacy_ancestries_not_reported_and_label_restored(self, project):
        report = await run_sync(SyncConfig(base_dir=project), default_overrides())
        ancestries = {stats.key: stats for stats in report.files}["ancestries"]
        assert ancestries.missing == []
        assert ancestries.total == 1

        data = read_entries(project, "daggerheart.ancestries.json")
        assert data["label"] == "Родословные"
        assert data["entries"]["Elf"] == {"name": "Эльф", "description": "<p>Высокие.</p>"}

    @pytest.mark.anyio
    async def test_second_run_changes_nothing(self, project):
        """Running over its own output leaves every file byte-identical."""
        await run_sync(SyncConfig(base_dir=project), default_overrides())
        first = snapshot_tree(project)
        report = await run_sync(SyncConfig(base_dir=project), default_overrides())

        assert snapshot_tree(project) == first
        assert all(stats.updated == 0 for stats in report.files)

    @pytest.mark.anyio
    async def test_missing_cache_writes_nothing(self, project):
        (project / "tmp_data" / "api" / "en" / "rule.json").unlink()
        before = snapshot_tree(project)

        with pytest.raises(SourceCacheError, match="rule.json"):
            await run_sync(SyncConfig(base_dir=project), default_overrides())
        assert snapshot_tree(project) == before

    @pytest.mark.anyio
    async def test_broken_file_does_not_stop_the_run(self, project):
        domains = project / "module" / "translations" / "daggerheart.domains.json"
        domains.write_text("{not json", encoding="utf-8")

        report = await run_sync(SyncConfig(base_dir=project), default_overrides())

        assert [stats.key for stats in report.failed] == ["domains"]
        assert "not valid JSON" in report.failed[0].error
        assert domains.read_text(encoding="utf-8") == "{not json"
        assert read_entries(project, "daggerheart.classes.json")["entries"]["Bard"]["name"] == "Бард"
        assert "- domains: FAILED" in report.format()
