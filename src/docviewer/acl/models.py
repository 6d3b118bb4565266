"""Document store data models for YAML config validation."""

from pydantic import BaseModel, Field, field_validator


class GroupACL(BaseModel):
    """A user group documents can be shared with."""

    group_id: str = Field(..., description="Stable group id")
    display_name: str = Field("", description="Group display name (for humans only)")

    @field_validator("group_id")
    @classmethod
    def validate_group_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("group_id must not be empty")
        return v


class DocumentACL(BaseModel):
    """A catalog document and the groups allowed to view it."""

    document_id: str = Field(..., description="Folder name under OUTPUTS_DIR")
    name: str = Field("", description="Human-readable name, defaults to the id")
    permissions: set[str] = Field(
        default_factory=set,
        description="Group ids allowed to view the document. Empty = admins only",
    )
    is_active: bool = Field(True, description="Inactive documents are left out of listings and denied to non-admins")

    @field_validator("document_id")
    @classmethod
    def validate_document_id(cls, v: str) -> str:
        if not v or v == "." or ":" in v or "/" in v or "\\" in v or ".." in v:
            raise ValueError(f"document_id must be a plain folder name, got: {v!r}")
        return v

    @property
    def display_name(self) -> str:
        return self.name or self.document_id


class DocumentsConfig(BaseModel):
    """Root document store configuration loaded from YAML."""

    documents: list[DocumentACL] = Field(default_factory=list)
    groups: list[GroupACL] = Field(default_factory=list)
