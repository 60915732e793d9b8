"""
Tests for the lookup map builders.
"""

from daggerheart_sync.sources.lookup import (
    FeatureConflict,
    armor_description,
    build_class_items_map,
    build_equipment_map,
    build_feature_description,
    build_feature_map,
    build_potential_labels,
    build_top_level_map,
    build_transformation_map,
    parse_potential_label_list,
    prepare_ancestry_main_body,
    prepare_community_main_body,
    weapon_description,
)
from daggerheart_sync.sources.models import BilingualDataset, SourceEntity, SourceFeature


def make_dataset(endpoint, source, target):
    return BilingualDataset(endpoint=endpoint, source=source, target=target)


class TestTopLevelMap:
    """Tests for build_top_level_map."""

    def test_translated_description(self):
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "name": "Bard", "description": "A bard."}],
            target=[{"slug": "bard", "name": "Бард", "description": "Бард поёт."}],
        )
        result = build_top_level_map(dataset, ("description",))
        assert list(result) == ["bard"]
        assert result["bard"].name == "Бард"
        assert result["bard"].description == "<p>Бард поёт.</p>"
        assert result["bard"].raw.slug == "bard"

    def test_identical_text_has_no_description(self):
        """An untranslated text leaves the destination value alone."""
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "name": "Bard", "description": "A bard."}],
            target=[{"slug": "bard", "name": "Бард", "description": "A bard."}],
        )
        assert build_top_level_map(dataset, ("description",))["bard"].description is None

    def test_fields_joined_and_paired_by_id(self):
        dataset = make_dataset(
            "rule",
            source=[{"id": 7, "name": "Hope", "description": "Intro.", "main_body": "Body."}],
            target=[{"id": 7, "name": "Надежда", "description": "Вступление.", "main_body": "Текст."}],
        )
        result = build_top_level_map(dataset, ("description",), main_field="main_body")
        assert result["hope"].description == "<p>Вступление.</p><p>Текст.</p>"

    def test_unpaired_entities_skipped(self):
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "name": "Bard"}, {"slug": "x", "name": "Бард"}],
            target=[{"slug": "x", "name": "Икс"}],
        )
        assert build_top_level_map(dataset, ("description",)) == {}

    def test_main_field_processor(self):
        dataset = make_dataset(
            "community",
            source=[{"slug": "loreborne", "name": "Loreborne", "main_body": "One.\n\nTwo."}],
            target=[{"slug": "loreborne", "name": "Ученые", "main_body": "Один.\n\nДва."}],
        )
        result = build_top_level_map(dataset, (), "main_body", prepare_community_main_body)
        assert result["loreborne"].description == "<p>Один.</p>"


class TestMainBodyPreprocessors:
    """Tests for the ancestry and community text cutters."""

    def test_community_keeps_italic_flavour(self):
        entity = SourceEntity()
        assert prepare_community_main_body("First.\n\n*Flavour*\n\nThird.", entity) == "First.\n\n*Flavour*"

    def test_community_drops_images(self):
        entity = SourceEntity()
        assert prepare_community_main_body("![map](x.png)First.\n\nSecond.", entity) == "First."

    def test_ancestry_takes_two_paragraphs(self):
        entity = SourceEntity()
        assert prepare_ancestry_main_body("One.\n\nTwo.\n\nThree.", entity) == "One.\n\nTwo."

    def test_ancestry_cut_at_image(self):
        entity = SourceEntity()
        assert prepare_ancestry_main_body("One.\n![img](x.png)\nMore.", entity) == "One."

    def test_ancestry_falls_back_to_short_description(self):
        entity = SourceEntity(short_description=" Short ")
        assert prepare_ancestry_main_body("\n![img](x.png)", entity) == "Short"


class TestFeatureMap:
    """Tests for build_feature_map."""

    def test_features_matched_by_id(self):
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "name": "Bard", "features": [{"id": 1, "name": "Rally", "main_body": "Give dice."}]}],
            target=[{"slug": "bard", "name": "Бард", "features": [{"id": 1, "name": "Воодушевление", "main_body": "Дайте кости."}]}],
        )
        features, conflicts = build_feature_map(dataset, ("features",), "class")
        assert features["rally"].name == "Воодушевление"
        assert features["rally"].description == "<p>Дайте кости.</p>"
        assert conflicts == []

    def test_untranslated_feature_skipped(self):
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "features": [{"id": 1, "name": "Rally", "main_body": "Same."}]}],
            target=[{"slug": "bard", "features": [{"id": 1, "name": "Rally", "main_body": "Same."}]}],
        )
        features, _ = build_feature_map(dataset, ("features",), "class")
        assert features == {}

    def test_first_mapping_wins_and_conflict_reported(self):
        """A repeated name with a different text is reported once."""
        dataset = make_dataset(
            "class",
            source=[
                {"slug": "bard", "features": [{"id": 1, "name": "Rally", "main_body": "A."}]},
                {"slug": "druid", "features": [{"id": 2, "name": "Rally", "main_body": "B."}]},
            ],
            target=[
                {"slug": "bard", "features": [{"id": 1, "name": "Сбор", "main_body": "Первый."}]},
                {"slug": "druid", "features": [{"id": 2, "name": "Сбор", "main_body": "Второй."}]},
            ],
        )
        features, conflicts = build_feature_map(dataset, ("features",), "class")
        assert features["rally"].description == "<p>Первый.</p>"
        assert conflicts == [FeatureConflict(name="Rally", scope="class")]


class TestOtherMaps:
    """Tests for transformation, class item and label maps."""

    def test_transformation_map(self):
        dataset = make_dataset(
            "transformation",
            source=[{"slug": "vampire", "name": "Vampire", "features": [{"id": 3, "name": "Drain", "main_body": "Drain."}]}],
            target=[
                {
                    "slug": "vampire",
                    "name": "Вампир",
                    "short_description": "Кратко.",
                    "features": [{"id": 3, "name": "Высасывание", "main_body": "Тело."}],
                }
            ],
        )
        entry = build_transformation_map(dataset)["vampiredrain"]
        assert entry.name == "Вампир - Высасывание"
        assert entry.short_description == "Кратко."
        assert entry.feature_body == "Тело."

    def test_class_items_also_keyed_without_article(self):
        dataset = make_dataset(
            "class",
            source=[{"slug": "bard", "class_items": ["A Romance Novel", "Torch"]}],
            target=[{"slug": "bard", "class_items": ["Любовный роман", "Факел"]}],
        )
        assert build_class_items_map(dataset) == {
            "aromancenovel": "Любовный роман",
            "romancenovel": "Любовный роман",
            "torch": "Факел",
        }

    def test_potential_labels(self):
        assert parse_potential_label_list("Beasts (Bear, Wolf), Outlaws (Bandit)", "Другие") == ["Beasts", "Outlaws"]
        assert parse_potential_label_list("Звери: (Медведь), Гоблин", "Другие") == ["Звери", "Другие"]
        assert parse_potential_label_list("", "Другие") == []

    def test_build_potential_labels_skips_empty(self):
        entities = [
            SourceEntity(slug="forest", potential_adversaries="Beasts (Bear)"),
            SourceEntity(slug="empty"),
            SourceEntity(potential_adversaries="Beasts (Bear)"),
        ]
        assert build_potential_labels(entities, "Другие") == {"forest": ["Beasts"]}


class TestDescriptions:
    """Tests for feature summaries and the equipment map."""

    def test_feature_description(self):
        features = [
            SourceFeature(name="Прочный", main_body="Получите **1** Броню."),
            SourceFeature(name="Тяжёлый"),
        ]
        assert build_feature_description(features) == (
            "<p><strong>Прочный</strong>: Получите <strong>1</strong> Броню.</p><p><strong>Тяжёлый</strong></p>"
        )
        assert build_feature_description([]) is None

    def test_armor_map_only_has_wanted_types(self):
        dataset = make_dataset(
            "equipment",
            source=[
                {"slug": "leather", "name": "Leather Armor", "type_slug": "armor"},
                {"slug": "sword", "name": "Sword", "type_slug": "primary-weapon"},
            ],
            target=[
                {"slug": "leather", "name": "Кожаный доспех", "features": [{"name": "Гибкий", "main_body": "Уклонение выше."}]},
                {"slug": "sword", "name": "Меч"},
            ],
        )
        result = build_equipment_map(dataset, ("armor",), armor_description)
        assert list(result) == ["leatherarmor"]
        assert result["leatherarmor"].name == "Кожаный доспех"
        assert result["leatherarmor"].description == "<p><strong>Гибкий</strong>: Уклонение выше.</p>"

    def test_wheelchair_falls_back_to_main_body(self):
        translated = SourceEntity(main_body="Кресло.")
        original = SourceEntity(main_body="Chair.", type_slug="combat-wheelchair")
        assert weapon_description(translated, original) == "<p>Кресло.</p>"
        assert weapon_description(translated, SourceEntity(main_body="Chair.", type_slug="primary-weapon")) is None
