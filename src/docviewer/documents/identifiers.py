"""Classification and validation of externally supplied document identifiers.

Two identifier shapes reach the API:

- ``SimpleId``: a bare catalog folder name, e.g. ``BMRA-Single-Server``.
- ``BatchFileId``: ``{batch_job_id}:{file_name}``, e.g.
  ``ALI10-1765274389.518018:pdf1.pdf``. On disk the output folder for such a
  file is named with the colon replaced by an underscore.

Raw strings are classified once at the HTTP boundary and the typed value is
passed downstream. Nothing in this module touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass

from docviewer.errors import IdentifierRejected

BATCH_SEPARATOR = ":"
FOLDER_SEPARATOR = "_"

_PATH_SEPARATORS = ("/", "\\")
_TRAVERSAL = ".."
_CURRENT_DIR = "."


@dataclass(frozen=True, slots=True)
class SimpleId:
    """A catalog document addressed by its folder name."""

    document_id: str

    def __str__(self) -> str:
        return self.document_id


@dataclass(frozen=True, slots=True)
class BatchFileId:
    """A single output file of a batch job."""

    batch_job_id: str
    file_name: str

    def __str__(self) -> str:
        return f"{self.batch_job_id}{BATCH_SEPARATOR}{self.file_name}"


Identifier = SimpleId | BatchFileId


def validate_segment(value: str, what: str = "identifier") -> str:
    """Ensure `value` is usable as exactly one path segment.

    Raises:
        IdentifierRejected: empty, ``.``, contains ``..``, ``/``, ``\\`` or a
            control character.
    """
    if not value:
        raise IdentifierRejected(f"Invalid {what}: empty")
    if value == _CURRENT_DIR or _TRAVERSAL in value:
        raise IdentifierRejected(f"Invalid {what}: traversal sequence")
    if any(sep in value for sep in _PATH_SEPARATORS):
        raise IdentifierRejected(f"Invalid {what}: path separator")
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        raise IdentifierRejected(f"Invalid {what}: control character")
    return value


def classify(raw: str) -> Identifier:
    """Classify a raw identifier string into `SimpleId` or `BatchFileId`.

    A string containing ``:`` is a batch file id: the text before the first
    colon is the job id and the rest is the file name. Either component must be
    a valid single segment and must not contain a further colon. Batch job ids
    must not contain ``_`` so the folder segment produced by
    `to_folder_segment` can always be split back at its first underscore.

    Raises:
        IdentifierRejected: the identifier is malformed or tries to traverse.
    """
    if not isinstance(raw, str):
        raise IdentifierRejected("Invalid identifier: not a string")

    # Checked on the whole string first so "a:../b" and "../a" fail the same way
    validate_segment(raw)

    if BATCH_SEPARATOR not in raw:
        return SimpleId(document_id=raw)

    batch_job_id, file_name = raw.split(BATCH_SEPARATOR, 1)
    validate_segment(batch_job_id, "batch job id")
    validate_segment(file_name, "file name")
    if BATCH_SEPARATOR in file_name:
        raise IdentifierRejected("Invalid file name: unexpected separator")
    # Trade-off: job ids give up "_" so "<job>_<file>" splits back at its first
    # underscore; file names keep "_" since uploaded names use it freely.
    if FOLDER_SEPARATOR in batch_job_id:
        raise IdentifierRejected("Invalid batch job id: underscore not allowed")
    return BatchFileId(batch_job_id=batch_job_id, file_name=file_name)


def to_folder_segment(identifier: BatchFileId) -> str:
    """Map a batch file id to its on-disk folder name.

    ``J1:f.pdf`` -> ``J1_f.pdf``. Only defined for identifiers produced by
    `classify`.
    """
    return f"{identifier.batch_job_id}{FOLDER_SEPARATOR}{identifier.file_name}"


def validate_batch_job_id(batch_job_id: str) -> str:
    """Validate a bare batch job id taken from a URL path."""
    validate_segment(batch_job_id, "batch job id")
    if BATCH_SEPARATOR in batch_job_id:
        raise IdentifierRejected("Invalid batch job id")
    return batch_job_id
