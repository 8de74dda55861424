"""Review of pending manager accounts.

Approving enables the account, rejecting keeps it disabled. Either way the
approval record leaves the ``pending`` state for good.
"""
import logging
from typing import Any, Callable, Dict, Optional

from lunch_admin.clients.collections import COLLECTION_USER_APPROVALS, COLLECTION_USERS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.errors import DocumentNotFoundError
from lunch_admin.features.audit.router import log_action
from lunch_admin.features.auth.service import require_admin
from lunch_admin.features.users.schemas import APPROVAL_APPROVED, APPROVAL_PENDING, APPROVAL_REJECTED
from lunch_admin.utils.callable import CallerContext, FailedPrecondition, InvalidArgument, NotFound
from lunch_admin.utils.timestamps import now_iso

logger = logging.getLogger(__name__)

DECISIONS = (APPROVAL_APPROVED, APPROVAL_REJECTED)

def list_pending_approvals(caller: Optional[CallerContext], documents: DocumentStore):
    require_admin(caller, documents, "view approvals")
    # Equality filter only, sorted here; filter plus order_by needs a composite index in Firestore
    pending = documents.query(COLLECTION_USER_APPROVALS, field="status", value=APPROVAL_PENDING)
    pending.sort(key=lambda item: item[1].get("requestTime") or "")
    return {"approvals": [{"id": doc_id, **data} for doc_id, data in pending]}

def review_approval(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    documents: DocumentStore,
    clock: Callable[[], str] = now_iso,
) -> Dict[str, str]:
    require_admin(caller, documents, "review approvals")

    uid = payload.get("uid")
    decision = payload.get("decision")
    notes = payload.get("notes") or ""
    if not uid or not isinstance(uid, str):
        raise InvalidArgument("The function must be called with a 'uid' argument.")
    if decision not in DECISIONS:
        raise InvalidArgument("The 'decision' argument must be 'approved' or 'rejected'.")
    if not isinstance(notes, str):
        raise InvalidArgument("The 'notes' argument must be a string.")

    approval = documents.get(COLLECTION_USER_APPROVALS, uid)
    if approval is None:
        raise NotFound(f"No approval request for user {uid}.")
    if approval.get("status") != APPROVAL_PENDING:
        raise FailedPrecondition(f"The approval request for user {uid} was already {approval.get('status')}.")

    now = clock()
    if decision == APPROVAL_APPROVED:
        user_fields = {"disabled": False, "pendingApproval": False, "approvedAt": now, "approvedBy": caller.uid}
    else:
        user_fields = {"disabled": True, "pendingApproval": False, "rejectedAt": now, "rejectedBy": caller.uid}
    user_fields.update({"lastUpdated": now, "updatedBy": caller.uid})

    # The user document goes first so a missing user leaves the request pending
    try:
        documents.update(COLLECTION_USERS, uid, user_fields)
    except DocumentNotFoundError as e:
        raise NotFound(f"User {uid} not found.") from e

    documents.update(COLLECTION_USER_APPROVALS, uid, {
        "status": decision,
        "reviewedBy": caller.uid,
        "reviewedAt": now,
        "notes": notes.strip(),
    })

    action = "APPROVE_USER" if decision == APPROVAL_APPROVED else "REJECT_USER"
    logger.info("Approval request of %s %s by %s", uid, decision, caller.uid)
    log_action(documents, user_id=caller.uid, action=action, details=f"{decision.capitalize()} user: {approval.get('email')}")
    return {"uid": uid, "status": decision}
