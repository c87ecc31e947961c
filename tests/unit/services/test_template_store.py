"""Template store unit tests."""

import json

import pytest

from inkora.models.template import TextBox
from inkora.services.template_store import STORE_META_FILE, TemplateStore, migrate_record
from inkora.utils.exceptions import StorageWriteError, TemplateNotFoundError
from inkora.utils.helpers import now_ms


# ===================
# Fixtures
# ===================


@pytest.fixture
def templates_dir(tmp_path):
    return tmp_path / "templates"


@pytest.fixture
def store(templates_dir):
    """Store over an empty temp directory."""
    return TemplateStore(templates_dir)


# ===================
# CRUD
# ===================


class TestTemplateStoreCrud:
    """Basic persistence."""

    def test_should_return_none_for_missing(self, store):
        assert store.get("template_missing") is None

    def test_should_raise_when_required_template_missing(self, store):
        with pytest.raises(TemplateNotFoundError):
            store.require("template_missing")

    def test_should_round_trip_template(self, store, template):
        template.add_text_box(TextBox(id="text_a", field_name="Name", color="#123456"))

        store.put(template)
        loaded = store.get(template.id)

        assert loaded.name == "Wedding"
        assert loaded.get_text_box("text_a").color == "#123456"
        assert loaded.image == template.image

    def test_should_write_camel_case_json(self, store, template, templates_dir):
        store.put(template)

        record = json.loads((templates_dir / f"{template.id}.json").read_text(encoding="utf-8"))
        assert "textBoxes" in record
        assert "createdAt" in record

    def test_should_keep_created_at_and_advance_updated_at(self, store, template):
        template.created_at = 1000
        template.updated_at = 2000

        stored = store.put(template)

        assert stored.created_at == 1000
        assert stored.updated_at >= now_ms() - 1000
        assert template.updated_at == 2000

    def test_should_replace_existing_template(self, store, template):
        store.put(template)
        template.rename("Birthday")
        store.put(template)

        assert store.count() == 1
        assert store.require(template.id).name == "Birthday"

    def test_should_delete_template(self, store, template):
        store.put(template)

        assert store.delete(template.id) is True
        assert store.delete(template.id) is False
        assert store.get(template.id) is None

    def test_should_reject_unsafe_id(self, store):
        assert store.get("../secrets") is None
        assert store.delete("../secrets") is False


class TestTemplateStoreListing:
    """Listing and bulk operations."""

    def test_should_list_most_recent_first(self, store, make_template):
        now = now_ms()
        older = make_template(template_id="template_old")
        older.updated_at = now + 10_000
        newer = make_template(template_id="template_new")
        newer.updated_at = now + 50_000

        store.put(older)
        store.put(newer)

        assert [t.id for t in store.list()] == ["template_new", "template_old"]

    def test_should_skip_corrupt_files(self, store, template, templates_dir):
        store.put(template)
        (templates_dir / "template_broken.json").write_text("{", encoding="utf-8")
        (templates_dir / "template_invalid.json").write_text('{"id": "x"}', encoding="utf-8")

        assert [t.id for t in store.list()] == [template.id]
        assert store.get("template_broken") is None

    def test_should_duplicate_template(self, store, template):
        store.put(template)

        copy = store.duplicate(template.id)

        assert copy.id != template.id
        assert copy.name == "Wedding (Copy)"
        assert store.count() == 2

    def test_should_rename_template(self, store, template):
        store.put(template)

        renamed = store.rename(template.id, "Reception")

        assert renamed.name == "Reception"
        assert store.require(template.id).name == "Reception"
        assert store.rename("template_missing", "x") is None

    def test_should_export_and_import(self, store, template, tmp_path):
        template.add_text_box(TextBox(id="text_a"))
        store.put(template)
        exported = store.export_templates()

        other = TemplateStore(tmp_path / "other")
        assert other.import_templates(exported) == 1

        imported = other.list()[0]
        assert imported.id != template.id
        assert imported.has_box("text_a")

    @pytest.mark.parametrize("payload", ["{not json", '{"id": "x"}', '[{"id": "x"}]'])
    def test_should_reject_invalid_import(self, store, payload):
        with pytest.raises(ValueError):
            store.import_templates(payload)
        assert store.count() == 0

    def test_should_clear_store(self, store, make_template):
        store.put(make_template(template_id="template_a"))
        store.put(make_template(template_id="template_b"))

        store.clear()

        assert store.count() == 0

    def test_should_report_storage_size(self, store, template):
        assert store.storage_size()["total"] == 0
        store.put(template)

        size = store.storage_size()
        assert size["templates"] > 0
        assert size["total"] == size["templates"] + size["metadata"]


# ===================
# Failures and migration
# ===================


class TestTemplateStoreFailures:
    """Write failures."""

    def test_should_raise_storage_write_error(self, tmp_path, template):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = TemplateStore(blocker / "templates")

        with pytest.raises(StorageWriteError):
            store.put(template)


class TestMigration:
    """Legacy record upgrades."""

    def test_should_migrate_legacy_records(self, templates_dir, make_image_data):
        templates_dir.mkdir(parents=True)
        legacy = {
            "id": "template_legacy",
            "name": "Old",
            "imageData": make_image_data(40, 30),
            "width": 40,
            "height": 30,
            "textBoxes": [],
            "colorBoxes": [],
        }
        (templates_dir / "template_legacy.json").write_text(json.dumps(legacy), encoding="utf-8")

        template = TemplateStore(templates_dir).require("template_legacy")

        assert template.image == legacy["imageData"]
        assert template.created_at > 0
        assert template.updated_at == template.created_at
        meta = json.loads((templates_dir / STORE_META_FILE).read_text(encoding="utf-8"))
        assert meta == {"version": 2}

    def test_migrate_record_backfills_updated_at(self):
        record = {"createdAt": 1234}

        assert migrate_record(record) is True
        assert record["updatedAt"] == 1234

    def test_migrate_record_leaves_current_records(self):
        record = {"image": "x", "createdAt": 1, "updatedAt": 2}

        assert migrate_record(record) is False
