import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lunch_admin.clients.collections import COLLECTION_AUDIT_LOGS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.config.backends import get_document_store
from lunch_admin.features.auth.router import get_caller_context
from lunch_admin.features.auth.service import require_admin
from lunch_admin.utils.callable import CallerContext
from lunch_admin.utils.timestamps import now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit", tags=["Audit"])

AUDIT_PAGE_SIZE = 100

class AuditResponse(BaseModel):
    id: str
    user_id: Optional[str] = Field(None, alias="userId")
    action: str
    details: Optional[str] = None
    timestamp: str

    class Config:
        populate_by_name = True

def log_action(documents: DocumentStore, user_id: Optional[str], action: str, details: str = None):
    # The action already happened, a lost audit entry must not turn it into a failure
    try:
        documents.add(COLLECTION_AUDIT_LOGS, {
            "userId": user_id,
            "action": action,
            "details": details,
            "timestamp": now_iso(),
        })
    except Exception:
        logger.exception("Failed to record audit entry %s by %s", action, user_id)

@router.get("/", response_model=List[AuditResponse])
def read_audit_logs(
    documents: DocumentStore = Depends(get_document_store),
    caller: Optional[CallerContext] = Depends(get_caller_context),
):
    require_admin(caller, documents, "view audit logs")
    entries = documents.query(COLLECTION_AUDIT_LOGS, order_by="timestamp", descending=True, limit=AUDIT_PAGE_SIZE)
    return [AuditResponse(id=doc_id, **data) for doc_id, data in entries]
