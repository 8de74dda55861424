import logging
from typing import Optional

from lunch_admin.clients.collections import COLLECTION_USERS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.identity import SqlIdentityProvider
from lunch_admin.config.backends import uses_firebase
from lunch_admin.features.users.schemas import ROLE_ADMIN
from lunch_admin.utils.callable import CallerContext, PermissionDenied, Unauthenticated
from lunch_admin.utils.security import create_access_token, decode_access_token

logger = logging.getLogger(__name__)

def authenticate_account(identity: SqlIdentityProvider, email: str, password: str):
    return identity.authenticate(email, password)

def create_caller_token(uid: str, email: str):
    return create_access_token(data={"sub": uid, "email": email})

def verify_caller_token(token: str) -> Optional[CallerContext]:
    """Resolves a bearer token to a caller, None when it cannot be verified."""
    if uses_firebase():
        from firebase_admin import auth, exceptions
        from lunch_admin.config.firebase import get_firebase_app

        try:
            claims = auth.verify_id_token(token, app=get_firebase_app())
        except (ValueError, exceptions.FirebaseError) as e:
            logger.info("Rejected Firebase ID token: %s", e)
            return None
        return CallerContext(uid=claims["uid"], claims=claims)

    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        return None
    return CallerContext(uid=claims["sub"], claims=claims)

def require_admin(caller: Optional[CallerContext], documents: DocumentStore, action: str) -> dict:
    """Checks the caller is signed in and its own user document has the admin role.

    The document is read on every call, roles can change between calls.
    """
    if caller is None:
        raise Unauthenticated("The function must be called while authenticated.")

    admin_user = documents.get(COLLECTION_USERS, caller.uid)
    if not admin_user or admin_user.get("role") != ROLE_ADMIN:
        logger.warning("Caller %s is not allowed to %s", caller.uid, action)
        raise PermissionDenied(f"Only admins can {action}.")
    return admin_user
