"""Credential checks for login.

Two strategies share one contract, ``validate_credentials(username,
password) -> Optional[Identity]``:

- :class:`StaticCredentialStore` compares plaintext passwords from
  configuration. It is a demo mode only and says so in the logs.
- :class:`DatabaseCredentialStore` checks bcrypt hashes in the ``users``
  table and only accepts active accounts.

Neither strategy logs passwords, and both answer ``None`` for an unknown
user and for a wrong password alike.
"""
import hmac
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recipe_api.config import Settings
from recipe_api.exceptions import (
    DuplicateUserError,
    InvalidCredentialsError,
    StorageUnavailableError,
    UserNotFoundError,
)
from recipe_api.models.user import User
from recipe_api.schemas.auth import Identity
from recipe_api.utils.auth import hash_password, verify_password
from recipe_api.utils.logger import logger


class CredentialStore(Protocol):
    def validate_credentials(self, username: str, password: str) -> Optional[Identity]: ...


class StaticCredentialStore:
    """Low-security plaintext user list loaded once from configuration."""

    def __init__(self, users: Iterable[Dict[str, str]]):
        self._users = [(u["username"], u["password"]) for u in users]
        logger.warning(
            "Using static plaintext credentials; this mode is for demos only",
            extra={"count": len(self._users), "action": "credentials_static"},
        )

    def validate_credentials(self, username: str, password: str) -> Optional[Identity]:
        for known_username, known_password in self._users:
            if known_username == username and hmac.compare_digest(
                known_password.encode("utf-8"), password.encode("utf-8")
            ):
                return Identity(username=username)
        return None


class DatabaseCredentialStore:
    """User accounts with bcrypt hashes in the ``users`` table."""

    def __init__(self, session_factory: sessionmaker, bcrypt_rounds: int = 12):
        self._session_factory = session_factory
        self.bcrypt_rounds = bcrypt_rounds
        # Compared against when the username is unknown so both failures cost one bcrypt check
        self._dummy_hash = hash_password("not-a-real-password", rounds=bcrypt_rounds)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageUnavailableError(f"Database error: {exc}", backend="database") from exc
        finally:
            db.close()

    # ----- login -----

    def authenticate(self, username: str, password: str) -> User:
        """Return the active user or raise.

        Raises:
            UserNotFoundError: no active account with this username.
            InvalidCredentialsError: the password does not match.
        """
        try:
            user = self.get_user_by_username(username)
        except UserNotFoundError:
            verify_password(password, self._dummy_hash)
            raise

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    def validate_credentials(self, username: str, password: str) -> Optional[Identity]:
        try:
            user = self.authenticate(username, password)
        except (UserNotFoundError, InvalidCredentialsError):
            return None
        return Identity(username=user.username, user_id=user.id)

    # ----- account management -----

    def get_user_by_username(self, username: str) -> User:
        with self._session() as db:
            user = db.scalars(
                select(User).where(User.username == username, User.is_active == True)  # noqa: E712
            ).first()
        if user is None:
            raise UserNotFoundError(username)
        return user

    def get_user_by_id(self, user_id: int) -> User:
        with self._session() as db:
            user = db.scalars(
                select(User).where(User.id == user_id, User.is_active == True)  # noqa: E712
            ).first()
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def create_user(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        is_active: bool = True,
        created_by: Optional[int] = None,
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            email=email,
            is_active=is_active,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            with self._session() as db:
                db.add(user)
                db.commit()
                db.refresh(user)
        except IntegrityError as exc:
            raise DuplicateUserError(username) from exc

        logger.info(f"Created user {username}", extra={"username": username, "action": "create_user"})
        return user

    def update_user(
        self,
        user_id: int,
        username: Optional[str] = None,
        email: Optional[str] = None,
        is_active: Optional[bool] = None,
        updated_by: Optional[int] = None,
    ) -> User:
        try:
            with self._session() as db:
                user = db.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(str(user_id))
                if username is not None:
                    user.username = username
                if email is not None:
                    user.email = email
                if is_active is not None:
                    user.is_active = is_active
                user.updated_by = updated_by
                db.commit()
                db.refresh(user)
        except IntegrityError as exc:
            raise DuplicateUserError(username) from exc
        return user

    def update_password(self, user_id: int, new_password: str, updated_by: Optional[int] = None) -> None:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                raise UserNotFoundError(str(user_id))
            username = user.username
            user.password_hash = hash_password(new_password, rounds=self.bcrypt_rounds)
            user.updated_by = updated_by
            db.commit()

        logger.info("Password updated", extra={"username": username, "action": "update_password"})

    def deactivate_user(self, user_id: int, updated_by: Optional[int] = None) -> None:
        """Soft delete: the account can no longer log in."""
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                raise UserNotFoundError(str(user_id))
            user.is_active = False
            user.updated_by = updated_by
            db.commit()

        logger.info(f"Deactivated user {user_id}", extra={"action": "deactivate_user"})


def build_credential_store(config: Settings, session_factory: Optional[sessionmaker] = None) -> CredentialStore:
    """Construct the strategy named by ``CREDENTIALS_BACKEND``."""
    if config.CREDENTIALS_BACKEND == "database":
        if session_factory is None:
            raise ValueError("database credentials require a session factory")
        return DatabaseCredentialStore(session_factory, bcrypt_rounds=config.BCRYPT_ROUNDS)
    return StaticCredentialStore(config.STATIC_USERS)
