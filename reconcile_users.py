"""Finds accounts and user documents that are no longer paired.

    python reconcile_users.py           # report only
    python reconcile_users.py --apply   # delete the orphans

Accounts without a user document are only removed once they are older than
--min-age-minutes, since self sign-up writes the document after the account.
"""
import argparse
import logging
from datetime import timedelta

from lunch_admin.config.backends import uses_firebase
from lunch_admin.config.database import SessionLocal
from lunch_admin.config.settings import settings
from lunch_admin.clients.documents import FirestoreDocumentStore, SqlDocumentStore
from lunch_admin.clients.identity import FirebaseIdentityProvider, SqlIdentityProvider
from lunch_admin.features.users.reconcile import MIN_ACCOUNT_AGE, reconcile

def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--apply", action="store_true", help="delete orphan documents, accounts and approvals")
    parser.add_argument("--min-age-minutes", type=int, default=int(MIN_ACCOUNT_AGE.total_seconds() // 60),
                        help="keep accounts without a user document that are younger than this")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    db = SessionLocal()
    if uses_firebase():
        from lunch_admin.config.firebase import get_firebase_app
        app = get_firebase_app()
        identity, documents = FirebaseIdentityProvider(app=app), FirestoreDocumentStore(app=app)
    else:
        identity, documents = SqlIdentityProvider(db), SqlDocumentStore(db)

    try:
        report = reconcile(identity, documents, apply=args.apply,
                           min_account_age=timedelta(minutes=args.min_age_minutes))
    finally:
        db.close()

    print(f"User documents without account: {report.orphan_documents or 'none'}")
    print(f"Accounts without user document: {report.orphan_accounts or 'none'}")
    print(f"Approval requests of missing users: {report.dangling_approvals or 'none'}")
    if report.recent_accounts:
        print(f"Recent accounts without user document, kept: {report.recent_accounts}")
    if report.clean:
        print("Nothing to reconcile.")
    elif report.applied:
        print("Orphans removed.")
    else:
        print("Dry run, re-run with --apply to remove them.")

if __name__ == "__main__":
    main()
