from typing import Optional

from fastapi import APIRouter, Depends

from lunch_admin.clients.documents import DocumentStore
from lunch_admin.clients.identity import IdentityProvider
from lunch_admin.config.backends import get_document_store, get_identity_provider
from lunch_admin.features.auth.router import get_caller_context
from lunch_admin.features.users import service
from lunch_admin.utils.callable import CallableRequest, CallerContext, result

router = APIRouter(tags=["Users"])

@router.post("/createUser")
def create_user(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    identity: IdentityProvider = Depends(get_identity_provider),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.create_user(envelope.payload(), caller, identity, documents))

@router.post("/deleteUser")
def delete_user(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    identity: IdentityProvider = Depends(get_identity_provider),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.delete_user(envelope.payload(), caller, identity, documents))

@router.post("/setUserRole")
def set_user_role(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.set_user_role(envelope.payload(), caller, documents))

@router.post("/setUserDisabled")
def set_user_disabled(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.set_user_disabled(envelope.payload(), caller, documents))

@router.post("/updateUser")
def update_user(
    envelope: CallableRequest,
    caller: Optional[CallerContext] = Depends(get_caller_context),
    documents: DocumentStore = Depends(get_document_store),
):
    return result(service.update_user(envelope.payload(), caller, documents))
