"""Template store.

Persists templates as JSON files in a directory.

Features:
    - One ``<id>.json`` file per template (camelCase record)
    - Upsert with timestamp maintenance
    - Listing by last update, duplicate, rename, count
    - JSON export/import of all templates
    - One-time schema migration of legacy records
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from inkora.models.template import Template
from inkora.utils.exceptions import StorageWriteError, TemplateNotFoundError
from inkora.utils.helpers import now_ms
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# Constants
# ===================

TEMPLATE_EXTENSION = ".json"
STORE_META_FILE = "store.meta"

# Current schema version; version 1 records may lack timestamps
STORE_VERSION = 2

_SAFE_ID = re.compile(r"^[A-Za-z0-9_\-]+$")


class TemplateStore:
    """JSON file template store.

    Example:
        >>> store = TemplateStore(settings.templates_dir)
        >>> saved = store.put(template)
        >>> store.require(saved.id).name
        'Wedding'
    """

    def __init__(self, templates_dir: Path | str) -> None:
        """Initialize the store.

        Args:
            templates_dir: Storage directory, created on first write
        """
        self._templates_dir = Path(templates_dir)
        self._migrated = False

    @property
    def templates_dir(self) -> Path:
        """Storage directory."""
        return self._templates_dir

    # ========================
    # Files
    # ========================

    def _get_template_path(self, template_id: str) -> Optional[Path]:
        if not _SAFE_ID.match(template_id):
            return None
        return self._templates_dir / f"{template_id}{TEMPLATE_EXTENSION}"

    def _template_files(self) -> list[Path]:
        if not self._templates_dir.is_dir():
            return []
        return sorted(self._templates_dir.glob(f"*{TEMPLATE_EXTENSION}"))

    def _write_file(self, path: Path, content: str) -> None:
        """Write a file atomically.

        Raises:
            StorageWriteError: The write failed
        """
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self._templates_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageWriteError(str(e)) from e

    def _read_record(self, path: Path) -> Optional[dict[str, Any]]:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read template: {path}, error: {e}")
            return None

    def _load_from_file(self, path: Path) -> Optional[Template]:
        record = self._read_record(path)
        if record is None:
            return None
        try:
            return Template.from_record(record)
        except ValidationError as e:
            logger.error(f"Invalid template record: {path}, error: {e}")
            return None

    def _save_to_file(self, template: Template) -> None:
        path = self._get_template_path(template.id)
        if path is None:
            raise StorageWriteError(f"invalid template id: {template.id}")
        self._write_file(path, template.to_json())

    # ========================
    # Migration
    # ========================

    def _read_version(self) -> int:
        meta_path = self._templates_dir / STORE_META_FILE
        if not meta_path.exists():
            return 1
        try:
            return int(json.loads(meta_path.read_text(encoding="utf-8")).get("version", 1))
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Unreadable store metadata, assuming version 1: {e}")
            return 1

    def _ensure_migrated(self) -> None:
        """Upgrade legacy records once, on first access."""
        if self._migrated:
            return

        if self._templates_dir.is_dir() and self._read_version() < STORE_VERSION:
            migrated = 0
            for path in self._template_files():
                record = self._read_record(path)
                if record is None or not migrate_record(record):
                    continue
                self._write_file(path, json.dumps(record, ensure_ascii=False, indent=2))
                migrated += 1
            self._write_file(
                self._templates_dir / STORE_META_FILE,
                json.dumps({"version": STORE_VERSION}),
            )
            logger.info(f"Template store migrated to version {STORE_VERSION}: {migrated} records")

        self._migrated = True

    # ========================
    # Public methods
    # ========================

    def get(self, template_id: str) -> Optional[Template]:
        """Load a template.

        Args:
            template_id: Template id

        Returns:
            Template, or None if missing or unreadable
        """
        self._ensure_migrated()
        path = self._get_template_path(template_id)
        if path is None or not path.exists():
            return None
        return self._load_from_file(path)

    def require(self, template_id: str) -> Template:
        """Load a template that must exist.

        Raises:
            TemplateNotFoundError: No such template
        """
        template = self.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def put(self, template: Template) -> Template:
        """Insert or replace a template.

        ``created_at`` is kept (or set if missing) and ``updated_at`` is set
        to now. The caller's object is not modified.

        Args:
            template: Template to store

        Returns:
            The stored copy

        Raises:
            StorageWriteError: The write failed
        """
        self._ensure_migrated()
        now = now_ms()
        stored = template.snapshot()
        stored.created_at = template.created_at or now
        stored.updated_at = max(now, template.updated_at)
        self._save_to_file(stored)
        logger.info(f"Template saved: {stored.name} ({stored.id})")
        return stored

    def delete(self, template_id: str) -> bool:
        """Delete a template.

        Returns:
            Whether a template was deleted
        """
        self._ensure_migrated()
        path = self._get_template_path(template_id)
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete template: {e}")
            raise StorageWriteError(str(e)) from e
        logger.info(f"Template deleted: {template_id}")
        return True

    def list(self) -> list[Template]:
        """All readable templates, most recently updated first."""
        self._ensure_migrated()
        templates = []
        for path in self._template_files():
            template = self._load_from_file(path)
            if template is not None:
                templates.append(template)
        return sorted(templates, key=lambda t: t.updated_at, reverse=True)

    def duplicate(self, template_id: str) -> Template:
        """Store a copy of a template under a new id.

        Raises:
            TemplateNotFoundError: No such template
            StorageWriteError: The write failed
        """
        copy = self.require(template_id).duplicate()
        self._save_to_file(copy)
        logger.info(f"Template duplicated: {template_id} -> {copy.id}")
        return copy

    def rename(self, template_id: str, name: str) -> Optional[Template]:
        """Rename a template.

        Returns:
            The renamed template, or None if missing
        """
        template = self.get(template_id)
        if template is None:
            return None
        template.rename(name)
        self._save_to_file(template)
        return template

    def count(self) -> int:
        """Number of stored templates."""
        self._ensure_migrated()
        return len(self._template_files())

    def export_templates(self) -> str:
        """Export every template as a JSON array."""
        records = [t.to_record() for t in self.list()]
        return json.dumps(records, ensure_ascii=False, indent=2)

    def import_templates(self, json_data: str) -> int:
        """Import templates exported by :meth:`export_templates`.

        Every imported template gets a fresh id and fresh timestamps.

        Args:
            json_data: JSON array of template records

        Returns:
            Number of imported templates

        Raises:
            ValueError: Malformed JSON or invalid records
            StorageWriteError: A write failed
        """
        self._ensure_migrated()
        records = json.loads(json_data)
        if not isinstance(records, list):
            raise ValueError("Expected a JSON array of templates")

        templates = []
        for index, record in enumerate(records):
            now = now_ms()
            record = dict(record)
            migrate_record(record)
            record.update({"id": f"template_{now}_{index}", "createdAt": now, "updatedAt": now})
            templates.append(Template.from_record(record))

        for template in templates:
            self._save_to_file(template)

        logger.info(f"Imported {len(templates)} templates")
        return len(templates)

    def clear(self) -> None:
        """Delete every template."""
        for path in self._template_files():
            try:
                path.unlink()
            except OSError as e:
                raise StorageWriteError(str(e)) from e
        logger.info("Template store cleared")

    def storage_size(self) -> dict[str, int]:
        """Bytes used by the store.

        Returns:
            Dict with ``templates``, ``metadata`` and ``total`` sizes
        """
        templates_size = sum(path.stat().st_size for path in self._template_files())
        meta_path = self._templates_dir / STORE_META_FILE
        meta_size = meta_path.stat().st_size if meta_path.exists() else 0
        return {
            "templates": templates_size,
            "metadata": meta_size,
            "total": templates_size + meta_size,
        }


def migrate_record(record: dict[str, Any]) -> bool:
    """Upgrade a legacy template record in place.

    Backfills missing ``createdAt`` / ``updatedAt`` and renames the legacy
    ``imageData`` key to ``image``.

    Returns:
        Whether the record changed
    """
    changed = False
    if "imageData" in record and "image" not in record:
        record["image"] = record.pop("imageData")
        changed = True
    if not record.get("createdAt"):
        now = now_ms()
        record["createdAt"] = now
        record["updatedAt"] = now
        changed = True
    elif not record.get("updatedAt"):
        record["updatedAt"] = record["createdAt"]
        changed = True
    return changed
