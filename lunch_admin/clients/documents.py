import copy
import secrets
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy.orm import Session

from lunch_admin.clients.errors import DocumentNotFoundError
from lunch_admin.models.document import Document

AUTO_ID_LENGTH = 20


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None: ...

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    def query(
        self,
        collection: str,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Dict[str, Any]]]: ...


class FirestoreDocumentStore:
    """Documents kept in Cloud Firestore."""

    def __init__(self, client=None, app=None):
        if client is None:
            from firebase_admin import firestore

            client = firestore.client(app=app)
        self.client = client

    def get(self, collection, doc_id):
        snapshot = self.client.collection(collection).document(doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, collection, doc_id, data):
        self.client.collection(collection).document(doc_id).set(data)

    def update(self, collection, doc_id, fields):
        from google.api_core.exceptions import NotFound

        try:
            self.client.collection(collection).document(doc_id).update(fields)
        except NotFound as e:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist") from e

    def delete(self, collection, doc_id):
        self.client.collection(collection).document(doc_id).delete()

    def add(self, collection, data):
        _, ref = self.client.collection(collection).add(data)
        return ref.id

    def query(self, collection, field=None, value=None, order_by=None, descending=False, limit=None):
        from google.cloud.firestore_v1.base_query import FieldFilter
        from google.cloud.firestore_v1.query import Query

        ref = self.client.collection(collection)
        if field is not None:
            ref = ref.where(filter=FieldFilter(field, "==", value))
        if order_by is not None:
            ref = ref.order_by(order_by, direction=Query.DESCENDING if descending else Query.ASCENDING)
        if limit is not None:
            ref = ref.limit(limit)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in ref.stream()]


class SqlDocumentStore:
    """Documents kept as JSON rows in the local database."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, collection, doc_id):
        return self.db.get(Document, (collection, doc_id))

    def get(self, collection, doc_id):
        row = self._row(collection, doc_id)
        return copy.deepcopy(row.data) if row else None

    def set(self, collection, doc_id, data):
        row = self._row(collection, doc_id)
        if row is None:
            self.db.add(Document(collection=collection, doc_id=doc_id, data=copy.deepcopy(data)))
        else:
            row.data = copy.deepcopy(data)
        self.db.commit()

    def update(self, collection, doc_id, fields):
        row = self._row(collection, doc_id)
        if row is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        # JSON columns only notice reassignment
        data = copy.deepcopy(row.data)
        data.update(fields)
        row.data = data
        self.db.commit()

    def delete(self, collection, doc_id):
        row = self._row(collection, doc_id)
        if row is not None:
            self.db.delete(row)
            self.db.commit()

    def add(self, collection, data):
        doc_id = secrets.token_hex(AUTO_ID_LENGTH // 2)
        self.set(collection, doc_id, data)
        return doc_id

    def query(self, collection, field=None, value=None, order_by=None, descending=False, limit=None):
        rows = self.db.query(Document).filter(Document.collection == collection).order_by(Document.doc_id).all()
        results = [(row.doc_id, copy.deepcopy(row.data)) for row in rows]
        if field is not None:
            results = [(doc_id, data) for doc_id, data in results if data.get(field) == value]
        if order_by is not None:
            results.sort(key=lambda item: str(item[1].get(order_by) or ""), reverse=descending)
        if limit is not None:
            results = results[:limit]
        return results
