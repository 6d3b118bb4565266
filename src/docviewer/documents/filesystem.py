"""Filesystem collaborator used by the locator and the batch job reader."""

from pathlib import Path


class LocalFilesystem:
    """Thin wrapper over the local filesystem.

    Kept as an object so tests and alternative backends can substitute it.
    Every method is blocking; async callers run them in a worker thread.
    Streaming file bytes is left to ``aiohttp.web.FileResponse``.
    """

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def list_files(self, path: Path) -> list[str]:
        """Names of regular files. Raises FileNotFoundError when `path` is missing."""
        return [entry.name for entry in path.iterdir() if entry.is_file()]

    def list_subdirs(self, path: Path) -> list[str]:
        """Names of subdirectories. Raises FileNotFoundError when `path` is missing."""
        return [entry.name for entry in path.iterdir() if entry.is_dir()]

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")
