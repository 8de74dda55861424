"""Out-of-band repair of accounts and user documents that drifted apart.

create_user and delete_user touch two services without a transaction; a
failure between the two steps leaves an account without a document or the
reverse. This job finds such pairs, and with ``apply=True`` removes them.

Self sign-up creates the account before the client writes its ``users``
document, so a fresh account without a document may still be mid sign-up.
Orphan accounts younger than ``min_account_age`` are reported but kept.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from lunch_admin.clients.collections import COLLECTION_USER_APPROVALS, COLLECTION_USERS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.errors import AccountNotFoundError
from lunch_admin.clients.identity import IdentityProvider

logger = logging.getLogger(__name__)

MIN_ACCOUNT_AGE = timedelta(hours=1)


@dataclass
class ReconcileReport:
    orphan_documents: List[str] = field(default_factory=list)
    orphan_accounts: List[str] = field(default_factory=list)
    dangling_approvals: List[str] = field(default_factory=list)
    recent_accounts: List[str] = field(default_factory=list)
    applied: bool = False

    @property
    def clean(self) -> bool:
        return not (self.orphan_documents or self.orphan_accounts or self.dangling_approvals)


def _is_recent(identity: IdentityProvider, uid: str, cutoff: datetime) -> bool:
    account = identity.get_account(uid)
    return bool(account and account.created_at and account.created_at > cutoff)


def find_inconsistencies(
    identity: IdentityProvider,
    documents: DocumentStore,
    min_account_age: timedelta = MIN_ACCOUNT_AGE,
    now: Optional[datetime] = None,
) -> ReconcileReport:
    account_uids = set(identity.list_uids())
    document_uids = {doc_id for doc_id, _ in documents.query(COLLECTION_USERS)}
    approval_uids = {doc_id for doc_id, _ in documents.query(COLLECTION_USER_APPROVALS)}

    cutoff = (now or datetime.now(timezone.utc)) - min_account_age
    lone_accounts = sorted(account_uids - document_uids)
    recent = [uid for uid in lone_accounts if _is_recent(identity, uid, cutoff)]

    return ReconcileReport(
        orphan_documents=sorted(document_uids - account_uids),
        orphan_accounts=[uid for uid in lone_accounts if uid not in recent],
        recent_accounts=recent,
        dangling_approvals=sorted(approval_uids - (document_uids & account_uids)),
    )


def reconcile(
    identity: IdentityProvider,
    documents: DocumentStore,
    apply: bool = False,
    min_account_age: timedelta = MIN_ACCOUNT_AGE,
    now: Optional[datetime] = None,
) -> ReconcileReport:
    report = find_inconsistencies(identity, documents, min_account_age, now)
    if not apply or report.clean:
        return report

    for uid in report.orphan_documents:
        documents.delete(COLLECTION_USERS, uid)
        logger.info("Removed user document without account: %s", uid)

    for uid in report.orphan_accounts:
        try:
            identity.delete_account(uid)
        except AccountNotFoundError:
            logger.warning("Account %s vanished before it could be removed", uid)
            continue
        logger.info("Removed account without user document: %s", uid)

    for uid in report.dangling_approvals:
        documents.delete(COLLECTION_USER_APPROVALS, uid)
        logger.info("Removed approval request of deleted user: %s", uid)

    report.applied = True
    return report
