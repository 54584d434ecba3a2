"""
tests/test_generator.py
Integration tests for seedgen.generator: DataGenerator, config loading and
the end-to-end SeedPipeline.

Every pipeline test writes into pytest's tmp_path; database runs use the
mocked connector from conftest.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict, List, Mapping, Optional
from unittest.mock import MagicMock

import pytest
import yaml
from bson import ObjectId

from seedgen.exporters import StorageManager
from seedgen.generator import (
    EMPTY_STRUCTURE_WARNING,
    DataGenerator,
    SeedPipeline,
    SeedReport,
    load_config_file,
)
from seedgen.models import (
    DEFAULT_JSON_PATH,
    DEFAULT_SCRIPT_PATH,
    FieldDefinition,
    FieldKind,
    ModelStructure,
    OutputFormat,
    SeederConfig,
    StorageError,
)


def _config(tmp_path: pathlib.Path, **kwargs: Any) -> SeederConfig:
    settings: Dict[str, Any] = {
        "resources_dir": str(tmp_path),
        "output_path": str(tmp_path / "seed.json"),
        "count": 5,
    }
    settings.update(kwargs)
    return SeederConfig(**settings)


# ===========================================================================
# DataGenerator
# ===========================================================================


class TestDataGenerator:
    def test_deterministic_record(self, post_structure: ModelStructure) -> None:
        record = DataGenerator().generate_record(post_structure, 0, realistic=False)

        assert list(record)[0] == "_id"
        assert isinstance(record["_id"], ObjectId)
        assert record["title"] == "title_1"
        assert record["status"] == "status_1"
        assert record["views"] == 1
        assert record["metadata"] == {"prop1": "value_1_1", "prop2": "value_1_2"}
        assert len(record["reviewers"]) == 2
        assert record["createdAt"] == record["updatedAt"]

    def test_every_field_present_when_deterministic(self, post_structure: ModelStructure) -> None:
        generator = DataGenerator()
        for i in range(10):
            record = generator.generate_record(post_structure, i, realistic=False)
            assert set(record) == {f.name for f in post_structure.fields} | {
                "_id", "createdAt", "updatedAt",
            }

    def test_required_fields_always_present(self, post_structure: ModelStructure) -> None:
        generator = DataGenerator(seed=3)
        required = {f.name for f in post_structure.fields if f.required}
        for i in range(50):
            record = generator.generate_record(post_structure, i)
            assert required <= set(record)

    def test_reserved_fields_are_not_generated(self) -> None:
        structure = ModelStructure.from_fields(
            "Soft",
            [
                FieldDefinition(name="label", type=FieldKind.STRING),
                FieldDefinition(name="isDeleted", type=FieldKind.BOOLEAN),
                FieldDefinition(name="createdAt", type=FieldKind.DATE),
            ],
        )
        record = DataGenerator().generate_record(structure, 0, realistic=False)
        assert "isDeleted" not in record
        assert record["createdAt"] == record["updatedAt"]

    def test_empty_structure_minimal_record(self) -> None:
        record = DataGenerator().generate_record(ModelStructure.empty("Ghost"), 0)
        assert set(record) == {"_id", "createdAt", "updatedAt", "__warning"}
        assert record["__warning"] == EMPTY_STRUCTURE_WARNING
        assert record["createdAt"] == record["updatedAt"]

    def test_non_structure_gives_minimal_records(self) -> None:
        records = DataGenerator().generate_records({"name": "Post"}, 2)  # type: ignore[arg-type]
        assert len(records) == 2
        for record in records:
            assert set(record) == {"_id", "createdAt", "updatedAt", "__warning"}
            assert record["__warning"] == EMPTY_STRUCTURE_WARNING
        assert records[0]["_id"] != records[1]["_id"]

    def test_custom_values(self, post_structure: ModelStructure) -> None:
        records = DataGenerator().generate_records(
            post_structure, 4, realistic=False, custom_values={"status": ["draft", "published"]}
        )
        assert [r["status"] for r in records] == ["draft", "published", "draft", "published"]

    def test_zero_count(self, post_structure: ModelStructure) -> None:
        assert DataGenerator().generate_records(post_structure, 0) == []

    def test_seed_reproducible(self, user_structure: ModelStructure) -> None:
        def emails(seed: int) -> List[str]:
            records = DataGenerator(seed=seed).generate_records(user_structure, 5)
            return [r["email"] for r in records]

        assert emails(42) == emails(42)


# ===========================================================================
# load_config_file
# ===========================================================================


class TestLoadConfigFile:
    def test_yaml_with_seeder_section(self, config_yaml_path: pathlib.Path) -> None:
        config = load_config_file(config_yaml_path)
        assert config.count == 3
        assert config.realistic is False
        assert config.custom_values == {"Post": {"status": ["draft", "published"]}}

    def test_overrides_win_unless_none(self, config_yaml_path: pathlib.Path) -> None:
        config = load_config_file(config_yaml_path, {"count": 7, "realistic": None})
        assert config.count == 7
        assert config.realistic is False

    def test_top_level_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "seeder.json"
        path.write_text(json.dumps({"count": 2, "output_format": "mongodb"}), encoding="utf-8")
        config = load_config_file(path)
        assert config.count == 2
        assert config.output_format == "mongodb"
        assert config.output_path == DEFAULT_SCRIPT_PATH

    def test_format_override_picks_script_default(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "seeder.yaml"
        path.write_text("seeder:\n  count: 2\n", encoding="utf-8")
        assert load_config_file(path).output_path == DEFAULT_JSON_PATH
        config = load_config_file(path, {"output_format": "mongodb"})
        assert config.output_path == DEFAULT_SCRIPT_PATH

    def test_explicit_output_path_kept(self) -> None:
        config = SeederConfig(output_format=OutputFormat.MONGODB, output_path="out/seed")
        assert config.output_path == "out/seed"
        assert SeederConfig(output_format="db").output_path == DEFAULT_JSON_PATH

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "seeder.conf"
        path.write_text("seeder:\n  count: 4\n", encoding="utf-8")
        assert load_config_file(path).count == 4

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("seeder: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_file(path)

    def test_non_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text(yaml.dump([1, 2]), encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config_file(path)

    def test_invalid_values(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "neg.yaml"
        path.write_text("count: -1\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_file(path)

    def test_bad_mongo_uri(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "uri.yaml"
        path.write_text("mongo_uri: postgres://localhost/db\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config_file(path)


# ===========================================================================
# SeedPipeline
# ===========================================================================


class _FailingGenerator(DataGenerator):
    def generate_records(
        self,
        structure: ModelStructure,
        count: int,
        realistic: bool = True,
        custom_values: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        if structure.name == "Post":
            raise RuntimeError("generator exploded")
        return super().generate_records(structure, count, realistic, custom_values)


class TestSeedPipeline:
    @pytest.fixture()
    def structures(
        self, user_structure: ModelStructure, post_structure: ModelStructure
    ) -> Dict[str, ModelStructure]:
        return {"Post": post_structure, "User": user_structure}

    def test_posts_reference_generated_users(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        report = SeedPipeline(_config(tmp_path, seed=11)).run(structures)

        assert report.success, report.summary()
        assert report.model_order == ["User", "Post"]
        assert report.records_per_model == {"User": 5, "Post": 5}
        assert report.total_records == 10

        user_ids = {u["_id"] for u in report.data["User"]}
        for post in report.data["Post"]:
            assert post["author"] in user_ids
            assert len(post["reviewers"]) <= 3
            assert len(set(post["reviewers"])) == len(post["reviewers"])
            assert set(post["reviewers"]) <= user_ids

    def test_json_file_written(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        report = SeedPipeline(_config(tmp_path, realistic=False)).run(structures)

        saved = StorageManager().load_data(tmp_path / "seed.json")
        assert set(saved) == {"User", "Post"}
        user_ids = {u["_id"] for u in saved["User"]}
        assert all(p["author"] in user_ids for p in saved["Post"])
        assert saved == report.data
        assert report.save_result is not None
        assert report.output_target == str(tmp_path / "seed.json")

    def test_mongodb_script_written(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        config = _config(tmp_path, output_format="mongodb", output_path=str(tmp_path / "seed"))
        report = SeedPipeline(config).run(structures)
        assert report.success
        script = (tmp_path / "seed.js").read_text(encoding="utf-8")
        assert script.index("db.users.insertMany") < script.index("db.posts.insertMany")

    def test_scan_resources(self, tmp_path: pathlib.Path, resources_dir: pathlib.Path) -> None:
        config = _config(tmp_path, resources_dir=str(resources_dir), count=2, realistic=False)
        report = SeedPipeline(config).run()

        assert report.success, report.summary()
        assert set(report.records_per_model) == {
            "Category", "Post", "Product", "Prueba", "Tag", "User",
        }
        order = report.model_order
        assert order.index("User") < order.index("Post") < order.index("Tag")
        assert order.index("Category") < order.index("Post")
        assert order.index("User") < order.index("Prueba")

        categories = {c["_id"] for c in report.data["Category"]}
        for post in report.data["Post"]:
            assert set(post["categories"]) <= categories

    def test_model_selection(
        self, tmp_path: pathlib.Path, resources_dir: pathlib.Path
    ) -> None:
        config = _config(tmp_path, resources_dir=str(resources_dir), models=["Prueba", "User"])
        report = SeedPipeline(config).run()
        assert report.model_order == ["User", "Prueba"]

    def test_unknown_model_fails_validation(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        report = SeedPipeline(_config(tmp_path, models=["Invoice"])).run(structures)
        assert not report.success
        assert any("UNKNOWN_MODEL" in e for e in report.validation_errors)
        assert report.data == {}
        assert not (tmp_path / "seed.json").exists()

    def test_missing_resources_dir(self, tmp_path: pathlib.Path) -> None:
        report = SeedPipeline(_config(tmp_path, resources_dir=str(tmp_path / "missing"))).run()
        assert not report.success
        assert any("not found" in e for e in report.generation_errors)

    def test_generation_failure_is_isolated(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        pipeline = SeedPipeline(_config(tmp_path), generator=_FailingGenerator())
        report = pipeline.run(structures)

        assert not report.success
        assert report.skipped_models == ["Post"]
        assert report.records_per_model == {"User": 5}
        saved = json.loads((tmp_path / "seed.json").read_text(encoding="utf-8"))
        assert list(saved) == ["User"]

    def test_storage_failure_reported(
        self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]
    ) -> None:
        storage = MagicMock(spec=StorageManager)
        storage.save_data.side_effect = StorageError("disk full")
        report = SeedPipeline(_config(tmp_path), storage=storage).run(structures)

        assert not report.success
        assert report.storage_errors == ["disk full"]
        assert report.save_result is None

    def test_database_output(
        self,
        tmp_path: pathlib.Path,
        structures: Dict[str, ModelStructure],
        mock_connector: MagicMock,
    ) -> None:
        config = _config(tmp_path, output_format="db", realistic=False)
        report = SeedPipeline(config, connector=mock_connector).run(structures)

        assert report.success, report.summary()
        assert report.save_result.inserted == 10
        mock_connector.connect.assert_not_called()
        mock_connector.disconnect.assert_not_called()
        assert not (tmp_path / "seed.json").exists()

    def test_database_connection_failure(
        self,
        tmp_path: pathlib.Path,
        structures: Dict[str, ModelStructure],
        mock_connector: MagicMock,
    ) -> None:
        mock_connector.is_connected = False
        mock_connector.connect.side_effect = StorageError("Could not connect to MongoDB")
        report = SeedPipeline(
            _config(tmp_path, output_format="db"), connector=mock_connector
        ).run(structures)

        assert not report.success
        assert report.storage_errors == ["Could not connect to MongoDB"]
        assert report.data == {}

    def test_summary(self, tmp_path: pathlib.Path, structures: Dict[str, ModelStructure]) -> None:
        report = SeedPipeline(_config(tmp_path, count=1)).run(structures)
        text = report.summary()
        assert "SUCCESS" in text
        assert "Generate Records" in text
        assert "User" in text and "Post" in text

    def test_failed_summary(self) -> None:
        report = SeedReport(storage_errors=["boom"])
        assert "FAILED" in report.summary()
        assert "Storage Errors (1)" in report.summary()
