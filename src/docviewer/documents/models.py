"""Resource kinds and resolved locations."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ResourceKind(str, Enum):
    STRUCTURE = "structure"
    IMAGE = "image"
    PDF = "pdf"


@dataclass(frozen=True, slots=True)
class Resource:
    """What a caller wants from a document folder. `name` is set for images only."""

    kind: ResourceKind
    name: str | None = None

    @classmethod
    def structure(cls) -> "Resource":
        return cls(ResourceKind.STRUCTURE)

    @classmethod
    def image(cls, name: str) -> "Resource":
        return cls(ResourceKind.IMAGE, name)

    @classmethod
    def pdf(cls) -> "Resource":
        return cls(ResourceKind.PDF)


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """An authorized, traversal-safe path. Only DocumentLocator builds these."""

    kind: ResourceKind
    absolute_path: Path


class DocumentSummary(BaseModel):
    """Listing entry for a catalog document present on disk."""

    id: str = Field(..., description="Document id (folder name)")
    name: str = Field(..., description="Display name")
    has_output_tree: bool = Field(
        False, serialization_alias="hasOutputTree",
        description="Whether the structure file exists yet",
    )
