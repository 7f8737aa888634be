import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import DuplicateEmail, UserNotFound
from .models import User, ROLE_MEMBER, utcnow

logger = logging.getLogger("library_api.users")


class UserService:
    """Users table access: directory operations plus the credential store
    used by the auth session manager."""

    def __init__(self, db: Session):
        self.db = db

    # directory
    def get_all(self):
        return self.db.query(User).order_by(User.id).all()

    def get_by_id(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFound()
        return user

    def update(self, user_id: int, name=None) -> User:
        # password, email and role are never changed here
        user = self.get_by_id(user_id)
        if name is not None:
            user.name = name
        user.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> bool:
        deleted = self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
        if deleted == 0:
            self.db.rollback()
            raise UserNotFound()
        self.db.commit()
        logger.info("user %s deleted", user_id)
        return True

    # credential store
    def find_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id):
        return self.db.query(User).filter(User.id == user_id).first()

    def insert(self, email: str, password_hash: str, name: str, role: str = ROLE_MEMBER) -> User:
        if self.find_by_email(email):
            raise DuplicateEmail()
        now = utcnow()
        user = User(email=email, password=password_hash, name=name, role=role,
                    created_at=now, updated_at=now)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            self.db.rollback()
            raise DuplicateEmail()
        self.db.refresh(user)
        return user

    def store_session(self, user_id: int, token_hash: str, family_id: str, expires_at, now) -> None:
        self.db.query(User).filter(User.id == user_id).update(
            {
                User.refresh_token: token_hash,
                User.token_family_id: family_id,
                User.token_family_created_at: now,
                User.refresh_token_expires_at: expires_at,
                User.last_login_at: now,
            },
            synchronize_session=False,
        )
        self.db.commit()

    def rotate_refresh_token(self, user_id: int, expected_hash: str, new_hash: str, expires_at, now) -> bool:
        """Swap the stored refresh-token hash only if it is still ``expected_hash``.

        Returns False when another request rotated or cleared it first.
        """
        updated = self.db.query(User).filter(
            User.id == user_id,
            User.refresh_token == expected_hash,
        ).update(
            {
                User.refresh_token: new_hash,
                User.refresh_token_expires_at: expires_at,
                User.last_token_refresh_at: now,
            },
            synchronize_session=False,
        )
        self.db.commit()
        return updated == 1

    def clear_session(self, user_id) -> None:
        self.db.query(User).filter(User.id == user_id).update(
            {User.refresh_token: None, User.token_family_id: None},
            synchronize_session=False,
        )
        self.db.commit()
