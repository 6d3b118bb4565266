"""ACL service deciding which documents a principal may see."""

import structlog

from docviewer.acl.store import DocumentStore
from docviewer.auth.models import Principal
from docviewer.documents.identifiers import BatchFileId, Identifier, SimpleId
from docviewer.errors import AccessDenied

logger = structlog.get_logger()

# Same text and status whether the document is missing or merely forbidden
DOCUMENT_UNAVAILABLE = "Document not found"


class AccessControlResolver:
    """Maps principals and identifiers to grant/deny decisions.

    Policy:
    1. Admins are granted everything.
    2. Batch files are granted to any authenticated principal. Batch outputs
       are job artifacts, not catalog documents, and carry no ACL.
    3. Catalog documents are granted iff the record exists, is active and
       shares at least one group with the principal.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def authorize(self, principal: Principal, identifier: Identifier) -> None:
        """Return normally on grant.

        Raises:
            AccessDenied: for catalog documents, with status 404 and a message
                identical to the one used for documents that do not exist.
        """
        if principal.is_admin:
            return

        if isinstance(identifier, BatchFileId):
            return

        if not isinstance(identifier, SimpleId):
            raise AccessDenied()

        record = self._store.find_document(identifier.document_id)
        granted = (
            record is not None
            and record.is_active
            and bool(record.permissions & principal.group_ids)
        )
        if not granted:
            logger.info(
                "access_denied",
                user_id=principal.user_id,
                document_id=identifier.document_id,
            )
            raise AccessDenied(DOCUMENT_UNAVAILABLE, status=404)

    def accessible_document_ids(self, principal: Principal) -> list[str]:
        """Sorted ids of active catalog documents the principal may list."""
        if principal.is_admin:
            return self._store.list_all()
        return self._store.list_accessible(principal.group_ids)

    def document_name(self, document_id: str) -> str:
        return self._store.get_document_name(document_id) or document_id
