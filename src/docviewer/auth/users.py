"""YAML-backed user store and bcrypt password helpers."""

import bcrypt
import structlog
import yaml
from pydantic import ValidationError

from docviewer.auth.models import UserRecord, UsersConfig
from docviewer.errors import StorageUnavailable

logger = structlog.get_logger()


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("malformed_password_hash")
        return False


class UserStore:
    """Looks up users by username or id."""

    def __init__(self, config_path: str):
        self._config_path = config_path
        self._by_username, self._by_id = self._load_config()

    def _load_config(self) -> tuple[dict[str, UserRecord], dict[str, UserRecord]]:
        try:
            with open(self._config_path) as f:
                raw = yaml.safe_load(f) or {}
            config = UsersConfig(**raw)
        except FileNotFoundError:
            raise
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            raise StorageUnavailable(f"Failed to load user store: {e}") from e
        return (
            {user.username: user for user in config.users},
            {user.user_id: user for user in config.users},
        )

    def reload_config(self) -> None:
        self._by_username, self._by_id = self._load_config()
        logger.info("user_store_reloaded", path=self._config_path, user_count=len(self._by_id))

    def find_user(self, username: str) -> UserRecord | None:
        return self._by_username.get(username)

    def get_user(self, user_id: str) -> UserRecord | None:
        return self._by_id.get(user_id)
