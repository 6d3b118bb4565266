"""Reads batch job status files from BATCH_OUTPUTS_DIR."""

import asyncio
import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from docviewer.batch.models import BatchJob
from docviewer.documents.filesystem import LocalFilesystem
from docviewer.documents.identifiers import validate_batch_job_id
from docviewer.errors import ResourceNotFound, StorageUnavailable

logger = structlog.get_logger()

STATUS_FILENAME = "status.json"


class BatchJobReader:
    """Lists batch jobs and reads their normalized status."""

    def __init__(self, batch_root: str | Path, filesystem: LocalFilesystem | None = None):
        self._batch_root = Path(batch_root).resolve()
        self._fs = filesystem or LocalFilesystem()

    def _read_status(self, batch_job_id: str) -> BatchJob:
        path = self._batch_root / batch_job_id / STATUS_FILENAME
        raw = json.loads(self._fs.read_text(path))
        if not isinstance(raw, dict):
            raise ValueError("status.json must contain an object")
        return BatchJob.from_status(batch_job_id, raw)

    async def read_batch_job(self, batch_job_id: str) -> BatchJob:
        """Normalized status of one job.

        Raises:
            IdentifierRejected: the job id is not a single safe segment.
            ResourceNotFound: the job or its status.json does not exist.
            StorageUnavailable: the status file is unreadable or malformed.
        """
        validate_batch_job_id(batch_job_id)
        try:
            return await asyncio.to_thread(self._read_status, batch_job_id)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ResourceNotFound("Batch job not found") from e
        except (OSError, ValueError, ValidationError) as e:
            logger.error("batch_status_unreadable", batch_job_id=batch_job_id, error=str(e))
            raise StorageUnavailable("Failed to read batch job status") from e

    def _list_jobs(self) -> list[BatchJob]:
        jobs: list[BatchJob] = []
        for name in sorted(self._fs.list_subdirs(self._batch_root)):
            try:
                jobs.append(self._read_status(name))
            except (OSError, ValueError, ValidationError) as e:
                # Jobs still being written or without status.json are not listed
                logger.debug("batch_job_skipped", batch_job_id=name, error=str(e))
        return jobs

    async def list_batch_jobs(self) -> list[BatchJob]:
        """All jobs with a readable status.json, sorted by folder name."""
        try:
            return await asyncio.to_thread(self._list_jobs)
        except (FileNotFoundError, NotADirectoryError):
            logger.warning("batch_root_missing", path=str(self._batch_root))
            return []
        except OSError as e:
            raise StorageUnavailable("Failed to list batch jobs") from e
