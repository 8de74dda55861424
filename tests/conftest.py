"""Shared fixtures: the local SQL backend on an in-memory SQLite database."""

import os

os.environ["BACKEND"] = "local"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lunch_admin.clients.collections import COLLECTION_USERS
from lunch_admin.clients.documents import SqlDocumentStore
from lunch_admin.clients.identity import SqlIdentityProvider
from lunch_admin.config.database import Base
from lunch_admin.models import account, document  # noqa: F401
from lunch_admin.utils.callable import CallerContext

ADMIN_UID = "A"
STAFF_UID = "S"


class FlakyDocumentStore:
    """Delegates to a real store but fails writes to the given collections."""

    def __init__(self, inner, fail_set=(), fail_delete=()):
        self.inner = inner
        self.fail_set = set(fail_set)
        self.fail_delete = set(fail_delete)

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def set(self, collection, doc_id, data):
        if collection in self.fail_set:
            raise RuntimeError(f"write to {collection} refused")
        self.inner.set(collection, doc_id, data)

    def delete(self, collection, doc_id):
        if collection in self.fail_delete:
            raise RuntimeError(f"delete from {collection} refused")
        self.inner.delete(collection, doc_id)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def identity(db: Session) -> SqlIdentityProvider:
    return SqlIdentityProvider(db)


@pytest.fixture
def documents(db: Session) -> SqlDocumentStore:
    return SqlDocumentStore(db)


def user_doc(uid: str, role: str, email: str = "") -> dict:
    return {
        "uid": uid,
        "email": email or f"{uid.lower()}@lunch.local",
        "displayName": uid,
        "role": role,
        "disabled": False,
        "pendingApproval": False,
    }


@pytest.fixture
def admin(documents: SqlDocumentStore) -> CallerContext:
    """Caller whose users document carries the admin role."""
    documents.set(COLLECTION_USERS, ADMIN_UID, user_doc(ADMIN_UID, "admin"))
    return CallerContext(uid=ADMIN_UID)


@pytest.fixture
def staff(documents: SqlDocumentStore) -> CallerContext:
    """Signed-in caller without the admin role."""
    documents.set(COLLECTION_USERS, STAFF_UID, user_doc(STAFF_UID, "staff"))
    return CallerContext(uid=STAFF_UID)
