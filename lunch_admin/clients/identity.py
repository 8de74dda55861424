import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lunch_admin.clients.errors import AccountExistsError, AccountNotFoundError, ClientError
from lunch_admin.models.account import Account
from lunch_admin.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

UID_ALPHABET = string.ascii_letters + string.digits
UID_LENGTH = 28
MIN_PASSWORD_LENGTH = 6


@dataclass
class AccountInfo:
    uid: str
    email: str
    display_name: Optional[str] = None
    disabled: bool = False
    created_at: Optional[datetime] = None


def _from_millis(millis: Optional[int]) -> Optional[datetime]:
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


class IdentityProvider(Protocol):
    def create_account(self, email: str, password: str, display_name: str) -> str: ...

    def delete_account(self, uid: str) -> None: ...

    def get_account(self, uid: str) -> Optional[AccountInfo]: ...

    def list_uids(self) -> List[str]: ...


class FirebaseIdentityProvider:
    """Accounts managed by Firebase Authentication."""

    def __init__(self, app=None):
        from firebase_admin import auth

        self._auth = auth
        self.app = app

    def create_account(self, email: str, password: str, display_name: str) -> str:
        try:
            record = self._auth.create_user(
                email=email, password=password, display_name=display_name, app=self.app
            )
        except self._auth.EmailAlreadyExistsError as e:
            raise AccountExistsError(f"The email address {email} is already in use.") from e
        return record.uid

    def delete_account(self, uid: str) -> None:
        try:
            self._auth.delete_user(uid, app=self.app)
        except self._auth.UserNotFoundError as e:
            raise AccountNotFoundError(f"No account for uid {uid}") from e

    def get_account(self, uid: str) -> Optional[AccountInfo]:
        try:
            record = self._auth.get_user(uid, app=self.app)
        except self._auth.UserNotFoundError:
            return None
        return AccountInfo(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            disabled=record.disabled,
            created_at=_from_millis(record.user_metadata.creation_timestamp),
        )

    def list_uids(self) -> List[str]:
        return [user.uid for user in self._auth.list_users(app=self.app).iterate_all()]


class SqlIdentityProvider:
    """Accounts kept in the local database, for development without Firebase."""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, email: str, password: str, display_name: str) -> str:
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ClientError(f"The password must be a string with at least {MIN_PASSWORD_LENGTH} characters.")

        email = email.strip().lower()
        if self.db.query(Account).filter(Account.email == email).first():
            raise AccountExistsError(f"The email address {email} is already in use.")

        uid = "".join(secrets.choice(UID_ALPHABET) for _ in range(UID_LENGTH))
        self.db.add(Account(
            uid=uid,
            email=email,
            hashed_password=get_password_hash(password),
            display_name=display_name,
        ))
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AccountExistsError(f"The email address {email} is already in use.") from e
        logger.debug("Created local account %s for %s", uid, email)
        return uid

    def delete_account(self, uid: str) -> None:
        account = self.db.get(Account, uid)
        if account is None:
            raise AccountNotFoundError(f"No account for uid {uid}")
        self.db.delete(account)
        self.db.commit()

    def get_account(self, uid: str) -> Optional[AccountInfo]:
        account = self.db.get(Account, uid)
        if account is None:
            return None
        return AccountInfo(
            uid=account.uid,
            email=account.email,
            display_name=account.display_name,
            disabled=bool(account.disabled),
            created_at=account.created_at.replace(tzinfo=timezone.utc) if account.created_at else None,
        )

    def list_uids(self) -> List[str]:
        return [uid for (uid,) in self.db.query(Account.uid).order_by(Account.uid).all()]

    def authenticate(self, email: str, password: str) -> Optional[AccountInfo]:
        account = self.db.query(Account).filter(Account.email == email.strip().lower()).first()
        if not account or not verify_password(password, account.hashed_password):
            return None
        return self.get_account(account.uid)
