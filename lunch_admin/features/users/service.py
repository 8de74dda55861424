"""Admin actions on user accounts.

Each action checks the caller, then its payload, then touches the identity
provider and the document store in that order. An account and its
``users/{uid}`` document are created and deleted together.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from lunch_admin.clients.collections import COLLECTION_USER_APPROVALS, COLLECTION_USERS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.errors import DocumentNotFoundError
from lunch_admin.clients.identity import IdentityProvider
from lunch_admin.features.audit.router import log_action
from lunch_admin.features.auth.service import require_admin
from lunch_admin.features.users.schemas import ApprovalRequest, ROLE_MANAGER, UserRecord
from lunch_admin.utils.callable import CallerContext, FailedPrecondition, Internal, InvalidArgument, NotFound
from lunch_admin.utils.timestamps import now_iso

logger = logging.getLogger(__name__)

REQUIRED_CREATE_FIELDS = ("email", "password", "displayName", "role")
ADMIN_CREATED_NOTE = "Created by admin"
EDITABLE_TEXT_FIELDS = ("displayName", "department", "employeeId")

def _text_field(payload: Dict[str, Any], name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidArgument(f"The '{name}' argument must be a string.")
    return value.strip()

def _check_email(email: str) -> str:
    # Same shape test as the identity provider SDK, domains are not judged
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise InvalidArgument("The 'email' argument must be a valid email address.")
    return email

def _target_uids(payload: Dict[str, Any]) -> List[str]:
    uids = payload.get("uids")
    if uids is None:
        uids = [payload.get("uid")]
    if not isinstance(uids, list) or not uids or not all(uid and isinstance(uid, str) for uid in uids):
        raise InvalidArgument("The function must be called with a 'uid' or a non-empty 'uids' argument.")
    return list(dict.fromkeys(uids))

def build_user_record(uid: str, email: str, display_name: str, role: str, department: str,
                      employee_id: str, acting_uid: Optional[str], now: str) -> UserRecord:
    needs_approval = role == ROLE_MANAGER
    return UserRecord(
        uid=uid,
        email=email,
        display_name=display_name,
        role=role,
        department=department,
        employee_id=employee_id,
        email_verified=False,
        disabled=needs_approval,
        pending_approval=needs_approval,
        creation_time=now,
        last_login=None,
        last_activity=None,
        created_by=acting_uid or "admin",
        last_updated=now,
        updated_by=acting_uid or "admin",
    )

def _compensate_create(uid: str, written: List[str], identity: IdentityProvider, documents: DocumentStore):
    """Undoes a half-finished create_user, newest write first."""
    for collection in reversed(written):
        try:
            documents.delete(collection, uid)
        except Exception:
            logger.exception("Compensation failed: could not delete %s/%s", collection, uid)
    try:
        identity.delete_account(uid)
        logger.info("Compensation removed account %s", uid)
    except Exception:
        logger.exception("Compensation failed: account %s is orphaned until reconciliation", uid)

def create_user(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    identity: IdentityProvider,
    documents: DocumentStore,
    clock: Callable[[], str] = now_iso,
) -> Dict[str, str]:
    require_admin(caller, documents, "create users")

    fields = {name: _text_field(payload, name) for name in REQUIRED_CREATE_FIELDS}
    if not all(fields.values()):
        raise InvalidArgument(
            "The function must be called with email, password, displayName and role arguments."
        )
    # Passwords are taken verbatim
    password = payload["password"]
    email, display_name, role = fields["email"], fields["displayName"], fields["role"]
    email = _check_email(email)
    department = _text_field(payload, "department")
    employee_id = _text_field(payload, "employeeId")

    try:
        uid = identity.create_account(email, password, display_name)
    except Exception as e:
        logger.exception("Error creating user")
        raise Internal(str(e)) from e

    written = []
    try:
        record = build_user_record(uid, email, display_name, role, department, employee_id, caller.uid, clock())
        documents.set(COLLECTION_USERS, uid, record.to_document())
        written.append(COLLECTION_USERS)

        if role == ROLE_MANAGER:
            approval = ApprovalRequest(
                user_id=uid,
                email=email,
                display_name=display_name,
                role=role,
                department=department,
                employee_id=employee_id,
                request_time=clock(),
                notes=ADMIN_CREATED_NOTE,
            )
            documents.set(COLLECTION_USER_APPROVALS, uid, approval.to_document())
            written.append(COLLECTION_USER_APPROVALS)
    except Exception as e:
        logger.exception("Error creating user")
        _compensate_create(uid, written, identity, documents)
        raise Internal(str(e)) from e

    logger.info("User %s (%s, %s) created by %s", uid, email, role, caller.uid)
    log_action(documents, user_id=caller.uid, action="CREATE_USER", details=f"Created user: {email} ({role})")
    return {"uid": uid}

def delete_user(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    identity: IdentityProvider,
    documents: DocumentStore,
) -> Dict[str, str]:
    require_admin(caller, documents, "delete users")

    uid = payload.get("uid")
    if not uid or not isinstance(uid, str):
        raise InvalidArgument("The function must be called with a 'uid' argument.")

    try:
        identity.delete_account(uid)
    except Exception as e:
        logger.exception("Error deleting user")
        raise Internal("Error deleting user.") from e

    try:
        documents.delete(COLLECTION_USERS, uid)
    except Exception as e:
        # The account is gone and cannot be restored, the reconciliation job drops the document
        logger.exception("Error deleting user: account %s removed but its document remains", uid)
        raise Internal("Error deleting user.") from e

    logger.info("User %s deleted by %s", uid, caller.uid)
    log_action(documents, user_id=caller.uid, action="DELETE_USER", details=f"Deleted user: {uid}")
    return {"message": f"Successfully deleted user {uid}"}

def set_user_role(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    documents: DocumentStore,
    clock: Callable[[], str] = now_iso,
) -> Dict[str, str]:
    require_admin(caller, documents, "change user roles")

    uid = _text_field(payload, "uid")
    role = _text_field(payload, "role")
    if not uid or not role:
        raise InvalidArgument("The function must be called with uid and role arguments.")

    try:
        documents.update(COLLECTION_USERS, uid, {
            "role": role,
            "lastUpdated": clock(),
            "updatedBy": caller.uid,
        })
    except DocumentNotFoundError as e:
        raise NotFound(f"User {uid} not found.") from e

    log_action(documents, user_id=caller.uid, action="SET_ROLE", details=f"Set role of {uid} to {role}")
    return {"uid": uid, "role": role}

def set_user_disabled(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    documents: DocumentStore,
    clock: Callable[[], str] = now_iso,
) -> Dict[str, Any]:
    """Enables or disables one user (``uid``) or several (``uids``).

    Every target is checked before the first write, so a bad uid in a bulk
    request leaves all users untouched.
    """
    require_admin(caller, documents, "modify user status")

    uids = _target_uids(payload)
    disabled = payload.get("disabled")
    if not isinstance(disabled, bool):
        raise InvalidArgument("The 'disabled' argument must be true or false.")
    if disabled and caller.uid in uids:
        raise FailedPrecondition("You cannot disable your own account.")

    for uid in uids:
        if documents.get(COLLECTION_USERS, uid) is None:
            raise NotFound(f"User {uid} not found.")

    now = clock()
    for uid in uids:
        documents.update(COLLECTION_USERS, uid, {"disabled": disabled, "lastUpdated": now, "updatedBy": caller.uid})

    action = "DISABLE_USER" if disabled else "ENABLE_USER"
    logger.info("%s %s by %s", action, ", ".join(uids), caller.uid)
    log_action(documents, user_id=caller.uid, action=action,
               details=f"{'Disabled' if disabled else 'Enabled'} users: {', '.join(uids)}")
    return {"uids": uids, "disabled": disabled}

def update_user(
    payload: Dict[str, Any],
    caller: Optional[CallerContext],
    documents: DocumentStore,
    clock: Callable[[], str] = now_iso,
) -> Dict[str, Any]:
    require_admin(caller, documents, "update users")

    uid = _text_field(payload, "uid")
    if not uid:
        raise InvalidArgument("The function must be called with a 'uid' argument.")

    changes = {}
    for key in EDITABLE_TEXT_FIELDS:
        if key in payload:
            changes[key] = _text_field(payload, key)
    if changes.get("displayName") == "":
        raise InvalidArgument("The 'displayName' argument must not be empty.")

    now = clock()
    if "emailVerified" in payload:
        verified = payload["emailVerified"]
        if not isinstance(verified, bool):
            raise InvalidArgument("The 'emailVerified' argument must be true or false.")
        changes["emailVerified"] = verified
        changes["lastActivity"] = now
        if verified:
            changes.update({"verifiedAt": now, "verifiedBy": caller.uid})

    if not changes:
        raise InvalidArgument("Nothing to update: pass displayName, department, employeeId or emailVerified.")

    updated = sorted(changes)
    changes.update({"lastUpdated": now, "updatedBy": caller.uid})
    try:
        documents.update(COLLECTION_USERS, uid, changes)
    except DocumentNotFoundError as e:
        raise NotFound(f"User {uid} not found.") from e

    log_action(documents, user_id=caller.uid, action="UPDATE_USER", details=f"Updated {', '.join(updated)} of {uid}")
    return {"uid": uid, "updated": updated}
