"""Turns authorized identifiers into concrete filesystem locations.

On-disk layout::

    OUTPUTS_DIR/
        <document_id>/
            outputs/processing/output_tree.json
            page-1.png ...
    BATCH_OUTPUTS_DIR/
        <batch_job_id>/
            status.json
            <batch_job_id>_<file_name>/
                input/original.pdf
                output/processing/output_tree.json
                output/processing/*.png ...

Every public method authorizes before it builds a path from caller input.
"""

import asyncio
import json
from pathlib import Path, PurePosixPath

import structlog

from docviewer.acl.service import AccessControlResolver
from docviewer.auth.models import Principal
from docviewer.documents.filesystem import LocalFilesystem
from docviewer.documents.identifiers import (
    BatchFileId,
    Identifier,
    SimpleId,
    to_folder_segment,
    validate_segment,
)
from docviewer.documents.models import (
    DocumentSummary,
    ResolvedLocation,
    Resource,
    ResourceKind,
)
from docviewer.errors import IdentifierRejected, ResourceNotFound, StorageUnavailable

logger = structlog.get_logger()

STRUCTURE_FILENAME = "output_tree.json"
DOCUMENT_STRUCTURE_PATH = ("outputs", "processing", STRUCTURE_FILENAME)
BATCH_PROCESSING_PATH = ("output", "processing")
BATCH_PDF_PATH = ("input", "original.pdf")

# Catalog documents and batch outputs accept different image types.
DOCUMENT_IMAGE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png"})
BATCH_IMAGE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif", ".webp"})

IMAGE_CONTENT_TYPES = {
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def image_extensions_for(identifier: Identifier) -> frozenset[str]:
    if isinstance(identifier, BatchFileId):
        return BATCH_IMAGE_EXTENSIONS
    return DOCUMENT_IMAGE_EXTENSIONS


def image_content_type(name: str) -> str:
    return IMAGE_CONTENT_TYPES.get(PurePosixPath(name).suffix.lower(), "application/octet-stream")


def _has_extension(name: str, extensions: frozenset[str]) -> bool:
    return PurePosixPath(name).suffix.lower() in extensions


class DocumentLocator:
    """Resolves structure, image and PDF resources for catalog and batch documents."""

    def __init__(
        self,
        acl: AccessControlResolver,
        documents_root: str | Path,
        batch_root: str | Path,
        filesystem: LocalFilesystem | None = None,
    ) -> None:
        self._acl = acl
        self._documents_root = Path(documents_root).resolve()
        self._batch_root = Path(batch_root).resolve()
        self._fs = filesystem or LocalFilesystem()

    def _folder(self, identifier: Identifier) -> Path:
        if isinstance(identifier, BatchFileId):
            return self._batch_root / identifier.batch_job_id / to_folder_segment(identifier)
        return self._documents_root / identifier.document_id

    def _image_folder(self, identifier: Identifier) -> Path:
        folder = self._folder(identifier)
        if isinstance(identifier, BatchFileId):
            return folder.joinpath(*BATCH_PROCESSING_PATH)
        return folder

    def _build_path(self, identifier: Identifier, resource: Resource) -> Path:
        folder = self._folder(identifier)

        if resource.kind is ResourceKind.STRUCTURE:
            if isinstance(identifier, BatchFileId):
                return folder.joinpath(*BATCH_PROCESSING_PATH, STRUCTURE_FILENAME)
            return folder.joinpath(*DOCUMENT_STRUCTURE_PATH)

        if resource.kind is ResourceKind.IMAGE:
            name = validate_segment(resource.name or "", "image name")
            if not _has_extension(name, image_extensions_for(identifier)):
                raise IdentifierRejected("Invalid image name: unsupported extension")
            return self._image_folder(identifier) / name

        if resource.kind is ResourceKind.PDF:
            if isinstance(identifier, BatchFileId):
                return folder.joinpath(*BATCH_PDF_PATH)
            # Catalog documents do not expose their source PDF
            raise ResourceNotFound("PDF not available for this document")

        raise ResourceNotFound("Unknown resource")

    def _ensure_contained(self, path: Path, identifier: Identifier) -> None:
        root = self._batch_root if isinstance(identifier, BatchFileId) else self._documents_root
        if path == root or not path.is_relative_to(root):
            logger.error("path_escaped_root", identifier=str(identifier))
            raise IdentifierRejected("Invalid identifier")

    async def resolve(
        self,
        principal: Principal,
        identifier: Identifier,
        resource: Resource,
    ) -> ResolvedLocation:
        """Authorize, then build and check the path for `resource`.

        Raises:
            AccessDenied: the principal may not see the document.
            IdentifierRejected: the image name is unsafe or not an allowed type.
            ResourceNotFound: the file does not exist right now.
            StorageUnavailable: the filesystem check itself failed.
        """
        self._acl.authorize(principal, identifier)

        path = self._build_path(identifier, resource)
        self._ensure_contained(path, identifier)

        try:
            present = await asyncio.to_thread(self._fs.is_file, path)
        except OSError as e:
            raise StorageUnavailable("Failed to access document storage") from e

        if not present:
            logger.info(
                "resource_not_found",
                identifier=str(identifier),
                kind=resource.kind.value,
            )
            raise ResourceNotFound(f"{resource.kind.value.capitalize()} not found")

        return ResolvedLocation(kind=resource.kind, absolute_path=path)

    async def list_images(self, principal: Principal, identifier: Identifier) -> list[str]:
        """Sorted image file names for a document, [] when the folder is missing."""
        self._acl.authorize(principal, identifier)

        folder = self._image_folder(identifier)
        self._ensure_contained(folder, identifier)
        try:
            names = await asyncio.to_thread(self._fs.list_files, folder)
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise StorageUnavailable("Failed to list document images") from e

        extensions = image_extensions_for(identifier)
        return sorted(name for name in names if _has_extension(name, extensions))

    async def list_documents(self, principal: Principal) -> list[DocumentSummary]:
        """Catalog documents the principal may see that also exist on disk."""
        accessible = self._acl.accessible_document_ids(principal)
        if not accessible:
            return []

        try:
            on_disk = set(await asyncio.to_thread(self._fs.list_subdirs, self._documents_root))
        except (FileNotFoundError, NotADirectoryError):
            logger.warning("documents_root_missing", path=str(self._documents_root))
            return []
        except OSError as e:
            raise StorageUnavailable("Failed to read documents directory") from e

        summaries: list[DocumentSummary] = []
        for document_id in accessible:
            if document_id not in on_disk:
                continue
            structure = self._build_path(SimpleId(document_id), Resource.structure())
            try:
                has_tree = await asyncio.to_thread(self._fs.is_file, structure)
            except OSError as e:
                raise StorageUnavailable("Failed to access document storage") from e
            summaries.append(
                DocumentSummary(
                    id=document_id,
                    name=self._acl.document_name(document_id),
                    has_output_tree=has_tree,
                )
            )
        return summaries

    async def read_structure(self, location: ResolvedLocation) -> object:
        """Parse the JSON structure file at a location returned by resolve()."""
        try:
            content = await asyncio.to_thread(self._fs.read_text, location.absolute_path)
            return json.loads(content)
        except (OSError, ValueError) as e:
            raise StorageUnavailable("Failed to read document structure") from e
