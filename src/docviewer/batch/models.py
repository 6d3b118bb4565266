"""Normalized batch job status models."""

from typing import Any

from pydantic import BaseModel, Field


class BatchJobFile(BaseModel):
    """One input file of a batch job."""

    batch_job_file_id: str = Field(..., description="Composite id, `<job>:<file>`")
    status: str = Field("pending")
    original_filename: str = Field("")
    format: str = Field("")
    params: dict[str, Any] = Field(default_factory=dict)


class BatchJob(BaseModel):
    """A batch job as described by its status.json."""

    batch_job_id: str
    status: str = Field("pending")
    user: str = Field("")
    created_at: str = Field("")
    updated_at: str = Field("")
    params: dict[str, Any] = Field(default_factory=dict)
    files: list[BatchJobFile] = Field(default_factory=list)

    @classmethod
    def from_status(cls, batch_job_id: str, raw: dict[str, Any]) -> "BatchJob":
        """Normalize a raw status.json payload. Missing fields get defaults."""
        raw_files = raw.get("files")
        files = [
            BatchJobFile(
                batch_job_file_id=str(item.get("file_id", "")),
                status=item.get("status") or "pending",
                original_filename=item.get("original_filename") or "",
                format=item.get("format") or "",
                params=item.get("params") or {},
            )
            for item in raw_files
            if isinstance(item, dict)
        ] if isinstance(raw_files, list) else []

        return cls(
            batch_job_id=raw.get("job_id") or batch_job_id,
            status=raw.get("status") or "pending",
            user=raw.get("user") or "",
            created_at=raw.get("created_at") or "",
            updated_at=raw.get("updated_at") or "",
            params=raw.get("params") or {},
            files=files,
        )
