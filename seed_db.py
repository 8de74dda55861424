"""Creates the first admin, whose account can then create everybody else.

    python seed_db.py admin@lunch.local admin123 "Lunch Admin"
"""
import sys

from lunch_admin.config.backends import uses_firebase
from lunch_admin.config.database import SessionLocal, Base, engine
from lunch_admin.clients.collections import COLLECTION_USERS
from lunch_admin.clients.documents import FirestoreDocumentStore, SqlDocumentStore
from lunch_admin.clients.identity import FirebaseIdentityProvider, SqlIdentityProvider
from lunch_admin.features.users.schemas import ROLE_ADMIN
from lunch_admin.features.users.service import build_user_record
from lunch_admin.models import account, document  # noqa: F401
from lunch_admin.utils.timestamps import now_iso

def seed(email="admin@lunch.local", password="admin123", display_name="Lunch Admin"):
    db = SessionLocal()
    if uses_firebase():
        from lunch_admin.config.firebase import get_firebase_app
        app = get_firebase_app()
        identity, documents = FirebaseIdentityProvider(app=app), FirestoreDocumentStore(app=app)
    else:
        # Ensure tables exist
        Base.metadata.create_all(bind=engine)
        identity, documents = SqlIdentityProvider(db), SqlDocumentStore(db)

    try:
        existing = [doc_id for doc_id, _ in documents.query(COLLECTION_USERS, field="email", value=email)]
        if existing:
            print(f"Admin already exists: {email} ({existing[0]})")
            return existing[0]

        print(f"Creating admin: {email}")
        uid = identity.create_account(email, password, display_name)
        record = build_user_record(uid, email, display_name, ROLE_ADMIN, "", "", None, now_iso())
        documents.set(COLLECTION_USERS, uid, record.to_document())
        print(f"Admin created with uid {uid}")
        return uid
    finally:
        db.close()

if __name__ == "__main__":
    seed(*sys.argv[1:4])
