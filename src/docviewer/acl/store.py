"""YAML-backed document store: document id -> allowed groups."""

import yaml
import structlog
from pydantic import ValidationError

from docviewer.acl.models import DocumentACL, DocumentsConfig
from docviewer.errors import StorageUnavailable

logger = structlog.get_logger()


class DocumentStore:
    """Read-only view of the document catalog and its permissions."""

    def __init__(self, config_path: str):
        self._config_path = config_path
        self._index = self._build_index(self._load_config())

    def _load_config(self) -> DocumentsConfig:
        try:
            with open(self._config_path) as f:
                raw = yaml.safe_load(f) or {}
            return DocumentsConfig(**raw)
        except FileNotFoundError:
            raise
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            raise StorageUnavailable(f"Failed to load document store: {e}") from e

    @staticmethod
    def _build_index(config: DocumentsConfig) -> dict[str, DocumentACL]:
        return {doc.document_id: doc for doc in config.documents}

    def reload_config(self) -> None:
        self._index = self._build_index(self._load_config())
        logger.info(
            "document_store_reloaded",
            path=self._config_path,
            document_count=len(self._index),
        )

    def find_document(self, document_id: str) -> DocumentACL | None:
        return self._index.get(document_id)

    def list_accessible(self, group_ids: set[str] | frozenset[str]) -> list[str]:
        """Ids of active documents shared with at least one of `group_ids`."""
        return sorted(
            doc.document_id
            for doc in self._index.values()
            if doc.is_active and doc.permissions & group_ids
        )

    def list_all(self) -> list[str]:
        """Ids of all active documents."""
        return sorted(doc.document_id for doc in self._index.values() if doc.is_active)

    def get_document_name(self, document_id: str) -> str | None:
        doc = self._index.get(document_id)
        return doc.display_name if doc else None
