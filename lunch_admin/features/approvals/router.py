from typing import Optional

from fastapi import APIRouter, Depends

from lunch_admin.clients.documents import DocumentStore
from lunch_admin.config.backends import get_document_store
from lunch_admin.features.approvals import service
from lunch_admin.features.auth.router import get_caller_context
from lunch_admin.utils.callable import CallableRequest, CallerContext, result

router = APIRouter(tags=["Approvals"])

@router.post("/listPendingApprovals")
def list_pending_approvals(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.list_pending_approvals(caller, documents))

@router.post("/reviewApproval")
def review_approval(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.review_approval(envelope.payload(), caller, documents))
