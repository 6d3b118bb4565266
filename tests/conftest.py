"""Pytest fixtures for docviewer tests."""

import json
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import bcrypt
import pytest
import yaml

from docviewer.acl.service import AccessControlResolver
from docviewer.acl.store import DocumentStore
from docviewer.auth.models import Principal
from docviewer.auth.session import SessionAuthority
from docviewer.auth.users import UserStore
from docviewer.config import Settings
from docviewer.documents.locator import DocumentLocator

BATCH_JOB_ID = "ALI10-123.5"
BATCH_FILE_ID = f"{BATCH_JOB_ID}:pdf1.pdf"
BATCH_FOLDER = f"{BATCH_JOB_ID}_pdf1.pdf"


class FakeClock:
    """Settable clock for session expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def mock_env_vars(tmp_path):
    """Mock environment variables for testing."""
    env_vars = {
        "OUTPUTS_DIR": str(tmp_path / "outputs"),
        "BATCH_OUTPUTS_DIR": str(tmp_path / "batch"),
        "HOST": "127.0.0.1",
        "PORT": "5001",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Create Settings instance with mocked environment."""
    return Settings(_env_file=None)


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of 'secret' with a low cost factor to keep tests fast."""
    return bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture
def users_yaml_content(password_hash):
    return {
        "users": [
            {
                "user_id": "u-alice",
                "username": "alice",
                "display_name": "Alice",
                "password_hash": password_hash,
                "groups": ["G1"],
            },
            {
                "user_id": "u-bob",
                "username": "bob",
                "display_name": "Bob",
                "password_hash": password_hash,
                "groups": ["G2"],
            },
            {
                "user_id": "u-root",
                "username": "root",
                "password_hash": password_hash,
                "groups": [],
                "is_admin": True,
            },
            {
                "user_id": "u-carol",
                "username": "carol",
                "password_hash": password_hash,
                "groups": ["G1"],
                "is_active": False,
            },
        ],
    }


@pytest.fixture
def users_config_path(users_yaml_content, tmp_path):
    """Write the user store to a temp file and return the path."""
    config_file = tmp_path / "users.yaml"
    config_file.write_text(yaml.dump(users_yaml_content))
    return str(config_file)


@pytest.fixture
def user_store(users_config_path):
    return UserStore(users_config_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_authority(user_store, clock):
    return SessionAuthority(user_store, ttl=24 * 3600, maxsize=100, clock=clock)


@pytest.fixture
def documents_yaml_content():
    """Document store with shared, locked, inactive and disk-less documents."""
    return {
        "groups": [
            {"group_id": "G1", "display_name": "BMRA Readers"},
            {"group_id": "G2", "display_name": "Finance"},
        ],
        "documents": [
            {"document_id": "BMRA", "name": "BMRA Single Server", "permissions": ["G1"]},
            {"document_id": "FIN", "permissions": ["G2"]},
            {"document_id": "LOCKED", "permissions": []},
            {"document_id": "RETIRED", "permissions": ["G1"], "is_active": False},
            {"document_id": "GHOST", "permissions": ["G1"]},
        ],
    }


@pytest.fixture
def documents_config_path(documents_yaml_content, tmp_path):
    """Write the document store to a temp file and return the path."""
    config_file = tmp_path / "documents.yaml"
    config_file.write_text(yaml.dump(documents_yaml_content))
    return str(config_file)


@pytest.fixture
def document_store(documents_config_path):
    return DocumentStore(documents_config_path)


@pytest.fixture
def acl(document_store):
    return AccessControlResolver(document_store)


@pytest.fixture
def alice():
    return Principal(user_id="u-alice", username="alice", group_ids=frozenset({"G1"}))


@pytest.fixture
def bob():
    return Principal(user_id="u-bob", username="bob", group_ids=frozenset({"G2"}))


@pytest.fixture
def admin():
    return Principal(user_id="u-root", username="root", is_admin=True)


@pytest.fixture
def outputs_dir(tmp_path):
    """Catalog tree. GHOST has a record but no folder; ORPHAN has a folder but no record."""
    root = tmp_path / "outputs"
    for doc_id in ("BMRA", "FIN", "LOCKED", "RETIRED"):
        processing = root / doc_id / "outputs" / "processing"
        processing.mkdir(parents=True)
        (processing / "output_tree.json").write_text(json.dumps({"root": {"content": [], "children": []}}))
    (root / "ORPHAN").mkdir()

    bmra = root / "BMRA"
    for name in ("page-2.png", "page-1.jpg", "cover.JPEG", "anim.gif", "notes.txt"):
        (bmra / name).write_bytes(b"img")
    # FIN has a folder but no structure file yet
    (root / "FIN" / "outputs" / "processing" / "output_tree.json").unlink()
    return root


@pytest.fixture
def batch_dir(tmp_path):
    root = tmp_path / "batch"
    job = root / BATCH_JOB_ID
    folder = job / BATCH_FOLDER
    (folder / "input").mkdir(parents=True)
    (folder / "input" / "original.pdf").write_bytes(b"%PDF-1.4 test")
    processing = folder / "output" / "processing"
    processing.mkdir(parents=True)
    (processing / "output_tree.json").write_text(json.dumps({"root": {"content": [], "children": []}}))
    for name in ("b.webp", "a.png", "c.gif", "log.txt"):
        (processing / name).write_bytes(b"img")

    (job / "status.json").write_text(json.dumps({
        "job_id": BATCH_JOB_ID,
        "status": "completed",
        "user": "alice",
        "created_at": "2026-01-01T00:00:00Z",
        "files": [
            {
                "file_id": BATCH_FILE_ID,
                "status": "completed",
                "original_filename": "pdf1.pdf",
                "format": "pdf",
            },
        ],
    }))
    # A job still being written: no status.json yet
    (root / "PENDING-1").mkdir()
    return root


@pytest.fixture
def locator(acl, outputs_dir, batch_dir):
    return DocumentLocator(acl, documents_root=outputs_dir, batch_root=batch_dir)
