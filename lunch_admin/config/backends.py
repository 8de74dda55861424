"""FastAPI dependencies selecting the identity provider and document store.

``BACKEND=firebase`` talks to Firebase Authentication and Firestore,
``BACKEND=local`` keeps both in the SQL database from ``DATABASE_URL``.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from lunch_admin.clients.documents import DocumentStore, FirestoreDocumentStore, SqlDocumentStore
from lunch_admin.clients.identity import FirebaseIdentityProvider, IdentityProvider, SqlIdentityProvider
from lunch_admin.config.database import get_db
from lunch_admin.config.settings import settings

BACKEND_LOCAL = "local"
BACKEND_FIREBASE = "firebase"

def uses_firebase() -> bool:
    return settings.BACKEND.lower() == BACKEND_FIREBASE

def get_identity_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    if uses_firebase():
        from lunch_admin.config.firebase import get_firebase_app
        return FirebaseIdentityProvider(app=get_firebase_app())
    return SqlIdentityProvider(db)

def get_document_store(db: Session = Depends(get_db)) -> DocumentStore:
    if uses_firebase():
        from lunch_admin.config.firebase import get_firebase_app
        return FirestoreDocumentStore(app=get_firebase_app())
    return SqlDocumentStore(db)
