from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from lunch_admin.clients.collections import COLLECTION_USERS
from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.identity import IdentityProvider
from lunch_admin.config.backends import get_document_store, get_identity_provider, uses_firebase
from lunch_admin.features.auth.service import authenticate_account, create_caller_token, verify_caller_token
from lunch_admin.utils.callable import CallerContext

router = APIRouter(prefix="/auth", tags=["Auth"])

def get_caller_context(request: Request) -> Optional[CallerContext]:
    """Caller identity from the Authorization header, None when absent or invalid."""
    auth = request.headers.get("Authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None

    token = auth.split(" ", 1)[1].strip()
    if not token:
        return None
    return verify_caller_token(token)

@router.post("/login")
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    identity: IdentityProvider = Depends(get_identity_provider),
    documents: DocumentStore = Depends(get_document_store),
):
    # Firebase clients sign in against Firebase Authentication directly
    if uses_firebase():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Local sign-in is disabled")

    account = authenticate_account(identity, form_data.username, form_data.password)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = documents.get(COLLECTION_USERS, account.uid) or {}
    if user.get("pendingApproval"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your account is pending admin approval.")
    if user.get("disabled") or account.disabled:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your account has been disabled. Please contact an administrator.")

    access_token = create_caller_token(account.uid, account.email)
    return {"access_token": access_token, "token_type": "bearer", "uid": account.uid}
