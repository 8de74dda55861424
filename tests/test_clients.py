"""Adapters behind the identity provider and document store ports.

The Firebase adapters run against in-memory fakes of ``firebase_admin.auth``
and the Firestore client that raise the real SDK exceptions.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from firebase_admin import auth
from google.api_core import exceptions as gexc
from google.cloud.firestore_v1.query import Query

from lunch_admin.clients.collections import COLLECTION_USER_APPROVALS, COLLECTION_USERS
from lunch_admin.clients.documents import FirestoreDocumentStore
from lunch_admin.clients.errors import AccountExistsError, AccountNotFoundError, ClientError, DocumentNotFoundError
from lunch_admin.clients.identity import UID_LENGTH, FirebaseIdentityProvider
from lunch_admin.features.approvals.service import list_pending_approvals
from lunch_admin.features.users.service import delete_user
from lunch_admin.utils.callable import CallerContext, Internal

from conftest import user_doc


class TestSqlIdentityProvider:
    def test_create_returns_firebase_shaped_uid(self, identity) -> None:
        uid = identity.create_account("Chef@Lunch.local", "secret1", "Chef")
        assert len(uid) == UID_LENGTH
        assert uid.isalnum()

        account = identity.get_account(uid)
        assert account.email == "chef@lunch.local"
        assert account.display_name == "Chef"
        assert account.disabled is False

    def test_email_is_unique(self, identity) -> None:
        identity.create_account("chef@lunch.local", "secret1", "Chef")
        with pytest.raises(AccountExistsError):
            identity.create_account("CHEF@lunch.local", "secret2", "Other Chef")

    def test_short_password_is_refused(self, identity) -> None:
        with pytest.raises(ClientError):
            identity.create_account("chef@lunch.local", "12345", "Chef")
        assert identity.list_uids() == []

    def test_delete_missing_account(self, identity) -> None:
        with pytest.raises(AccountNotFoundError):
            identity.delete_account("missing")

    def test_authenticate(self, identity) -> None:
        uid = identity.create_account("chef@lunch.local", "secret1", "Chef")
        assert identity.authenticate("chef@lunch.local", "secret1").uid == uid
        assert identity.authenticate("chef@lunch.local", "wrong") is None
        assert identity.authenticate("nobody@lunch.local", "secret1") is None

    def test_password_is_not_stored_in_clear(self, identity, db) -> None:
        from lunch_admin.models.account import Account

        uid = identity.create_account("chef@lunch.local", "secret1", "Chef")
        assert db.get(Account, uid).hashed_password != "secret1"


class TestSqlDocumentStore:
    def test_set_get_roundtrip_is_isolated(self, documents) -> None:
        data = {"name": "Pasta", "tags": ["veg"]}
        documents.set("menus", "m1", data)
        data["tags"].append("hot")

        stored = documents.get("menus", "m1")
        assert stored == {"name": "Pasta", "tags": ["veg"]}
        stored["name"] = "Pizza"
        assert documents.get("menus", "m1")["name"] == "Pasta"

    def test_get_missing_is_none(self, documents) -> None:
        assert documents.get("menus", "nope") is None

    def test_set_overwrites(self, documents) -> None:
        documents.set("menus", "m1", {"name": "Pasta", "price": 5})
        documents.set("menus", "m1", {"name": "Soup"})
        assert documents.get("menus", "m1") == {"name": "Soup"}

    def test_update_merges_fields(self, documents) -> None:
        documents.set("menus", "m1", {"name": "Pasta", "price": 5})
        documents.update("menus", "m1", {"price": 6})
        assert documents.get("menus", "m1") == {"name": "Pasta", "price": 6}

    def test_update_missing_document(self, documents) -> None:
        with pytest.raises(DocumentNotFoundError):
            documents.update("menus", "nope", {"price": 6})

    def test_delete_is_idempotent(self, documents) -> None:
        documents.set("menus", "m1", {"name": "Pasta"})
        documents.delete("menus", "m1")
        documents.delete("menus", "m1")
        assert documents.get("menus", "m1") is None

    def test_collections_are_separate(self, documents) -> None:
        documents.set("menus", "same", {"kind": "menu"})
        documents.set("orders", "same", {"kind": "order"})
        assert documents.get("menus", "same") == {"kind": "menu"}
        assert [doc_id for doc_id, _ in documents.query("orders")] == ["same"]

    def test_add_generates_ids(self, documents) -> None:
        first = documents.add("logs", {"n": 1})
        second = documents.add("logs", {"n": 2})
        assert first != second
        assert documents.get("logs", first) == {"n": 1}

    def test_query_filters_orders_and_limits(self, documents) -> None:
        documents.set("orders", "o1", {"status": "open", "at": "2024-01-02"})
        documents.set("orders", "o2", {"status": "done", "at": "2024-01-03"})
        documents.set("orders", "o3", {"status": "open", "at": "2024-01-01"})

        assert [i for i, _ in documents.query("orders", field="status", value="open")] == ["o1", "o3"]
        assert [i for i, _ in documents.query("orders", order_by="at")] == ["o3", "o1", "o2"]
        assert [i for i, _ in documents.query("orders", order_by="at", descending=True, limit=2)] == ["o2", "o1"]


class FakeAuth:
    """Stands in for ``firebase_admin.auth`` and keeps users in a dict."""

    EmailAlreadyExistsError = auth.EmailAlreadyExistsError
    UserNotFoundError = auth.UserNotFoundError

    def __init__(self):
        self.users = {}
        self.apps = []

    def create_user(self, email, password, display_name, app=None):
        self.apps.append(app)
        if any(user.email == email for user in self.users.values()):
            raise auth.EmailAlreadyExistsError("EMAIL_EXISTS", None, None)
        record = SimpleNamespace(
            uid=f"fb{len(self.users)}", email=email, display_name=display_name, disabled=False,
            user_metadata=SimpleNamespace(creation_timestamp=1_700_000_000_000),
        )
        self.users[record.uid] = record
        return record

    def delete_user(self, uid, app=None):
        self.apps.append(app)
        if self.users.pop(uid, None) is None:
            raise auth.UserNotFoundError("USER_NOT_FOUND")

    def get_user(self, uid, app=None):
        if uid not in self.users:
            raise auth.UserNotFoundError("USER_NOT_FOUND")
        return self.users[uid]

    def list_users(self, app=None):
        return SimpleNamespace(iterate_all=lambda: iter(self.users.values()))


class FakeQuery:
    def __init__(self, client, collection, steps=()):
        self.client = client
        self.collection_name = collection
        self.steps = list(steps)

    def _then(self, *step):
        return FakeQuery(self.client, self.collection_name, self.steps + [step])

    def where(self, filter):
        return self._then("where", filter.field_path, filter.value)

    def order_by(self, field_path, direction):
        return self._then("order_by", field_path, direction)

    def limit(self, count):
        return self._then("limit", count)

    def stream(self):
        self.client.queries.append(self.steps)
        filtered = {s[1] for s in self.steps if s[0] == "where"}
        ordered = {s[1] for s in self.steps if s[0] == "order_by"}
        if filtered and ordered - filtered:
            raise gexc.FailedPrecondition("The query requires an index.")

        items = list(self.client.data.get(self.collection_name, {}).items())
        for step in self.steps:
            if step[0] == "where":
                items = [item for item in items if item[1].get(step[1]) == step[2]]
            elif step[0] == "order_by":
                items.sort(key=lambda item: item[1].get(step[1]), reverse=step[2] == Query.DESCENDING)
            else:
                items = items[:step[1]]
        return [SimpleNamespace(id=doc_id, to_dict=lambda data=data: dict(data)) for doc_id, data in items]


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocument(self.client.data.setdefault(self.collection_name, {}), doc_id)

    def add(self, data):
        ref = self.document(f"auto{len(self.client.data.get(self.collection_name, {}))}")
        ref.set(data)
        return None, ref


class FakeDocument:
    def __init__(self, docs, doc_id):
        self.docs = docs
        self.id = doc_id

    def get(self):
        data = self.docs.get(self.id)
        return SimpleNamespace(exists=data is not None, to_dict=lambda: dict(data))

    def set(self, data):
        self.docs[self.id] = dict(data)

    def update(self, fields):
        if self.id not in self.docs:
            raise gexc.NotFound(f"No document to update: {self.id}")
        self.docs[self.id].update(fields)

    def delete(self):
        self.docs.pop(self.id, None)


class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.queries = []

    def collection(self, name):
        return FakeCollection(self, name)


@pytest.fixture
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def firebase_identity(fake_auth) -> FirebaseIdentityProvider:
    provider = FirebaseIdentityProvider(app="lunch-app")
    provider._auth = fake_auth
    return provider


@pytest.fixture
def firestore() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def firestore_documents(firestore) -> FirestoreDocumentStore:
    return FirestoreDocumentStore(client=firestore)


class TestFirebaseIdentityProvider:
    def test_create_and_get(self, firebase_identity, fake_auth) -> None:
        uid = firebase_identity.create_account("cook@lunch.local", "secret1", "Cook")

        account = firebase_identity.get_account(uid)
        assert (account.uid, account.email, account.display_name, account.disabled) == (uid, "cook@lunch.local", "Cook", False)
        assert account.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert fake_auth.apps == ["lunch-app"]

    def test_existing_email_is_translated(self, firebase_identity) -> None:
        firebase_identity.create_account("cook@lunch.local", "secret1", "Cook")
        with pytest.raises(AccountExistsError) as exc_info:
            firebase_identity.create_account("cook@lunch.local", "secret1", "Cook")
        assert "already in use" in str(exc_info.value)

    def test_missing_account_is_translated(self, firebase_identity) -> None:
        with pytest.raises(AccountNotFoundError):
            firebase_identity.delete_account("gone")
        assert firebase_identity.get_account("gone") is None

    def test_list_uids(self, firebase_identity) -> None:
        uids = [firebase_identity.create_account(f"c{i}@x.com", "secret1", "C") for i in range(3)]
        assert firebase_identity.list_uids() == uids

    def test_delete_user_of_deleted_account_is_internal(self, firebase_identity, firestore_documents) -> None:
        firestore_documents.set(COLLECTION_USERS, "A", user_doc("A", "admin"))
        uid = firebase_identity.create_account("cook@lunch.local", "secret1", "Cook")
        firestore_documents.set(COLLECTION_USERS, uid, user_doc(uid, "staff"))
        firebase_identity.delete_account(uid)

        with pytest.raises(Internal) as exc_info:
            delete_user({"uid": uid}, CallerContext(uid="A"), firebase_identity, firestore_documents)
        assert exc_info.value.message == "Error deleting user."
        assert firestore_documents.get(COLLECTION_USERS, uid) is not None


class TestFirestoreDocumentStore:
    def test_set_get_delete(self, firestore_documents) -> None:
        firestore_documents.set("menus", "m1", {"name": "Pasta"})
        assert firestore_documents.get("menus", "m1") == {"name": "Pasta"}
        firestore_documents.delete("menus", "m1")
        assert firestore_documents.get("menus", "m1") is None

    def test_update_missing_document_is_translated(self, firestore_documents) -> None:
        with pytest.raises(DocumentNotFoundError):
            firestore_documents.update("menus", "nope", {"price": 6})

    def test_add_returns_generated_id(self, firestore_documents) -> None:
        doc_id = firestore_documents.add("logs", {"n": 1})
        assert firestore_documents.get("logs", doc_id) == {"n": 1}

    def test_query_builds_the_chain(self, firestore_documents, firestore) -> None:
        firestore_documents.set("orders", "o1", {"status": "open", "at": "2"})
        firestore_documents.set("orders", "o2", {"status": "open", "at": "1"})

        result = firestore_documents.query("orders", field="status", value="open", order_by="status",
                                           descending=True, limit=1)
        assert len(result) == 1
        assert firestore.queries[-1] == [
            ("where", "status", "open"),
            ("order_by", "status", Query.DESCENDING),
            ("limit", 1),
        ]

    def test_query_orders_ascending_by_default(self, firestore_documents, firestore) -> None:
        firestore_documents.set("orders", "o1", {"at": "2"})
        firestore_documents.set("orders", "o2", {"at": "1"})

        assert [doc_id for doc_id, _ in firestore_documents.query("orders", order_by="at")] == ["o2", "o1"]
        assert firestore.queries[-1] == [("order_by", "at", Query.ASCENDING)]

    def test_pending_approvals_need_no_composite_index(self, firestore_documents, firestore) -> None:
        firestore_documents.set(COLLECTION_USERS, "A", user_doc("A", "admin"))
        for uid, requested in [("m1", "2024-05-02"), ("m2", "2024-05-01")]:
            firestore_documents.set(COLLECTION_USER_APPROVALS, uid, {"userId": uid, "status": "pending", "requestTime": requested})
        firestore_documents.set(COLLECTION_USER_APPROVALS, "m3", {"userId": "m3", "status": "approved", "requestTime": "2024-04-01"})

        approvals = list_pending_approvals(CallerContext(uid="A"), firestore_documents)["approvals"]
        assert [a["id"] for a in approvals] == ["m2", "m1"]
        assert firestore.queries[-1] == [("where", "status", "pending")]
