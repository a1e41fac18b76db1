import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from travel_agency.models import User, RefreshToken
from travel_agency.auth.schemas import UserCreate, Role, UserStatus, TokenPair
from travel_agency.auth.utils import (
    get_password_hash, verify_password, create_access_token, create_refresh_token,
    decode_refresh_token, hash_token
)
from travel_agency.config import settings
from travel_agency.exceptions import ConflictError, UnauthorizedError, ForbiddenError
from travel_agency.logging_config import timed
from travel_agency.utils import utcnow, as_utc

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create_user(db: Session, user: UserCreate, role: Role = Role.CUSTOMER) -> User:
        """Create a new active user"""
        if UserService.get_user_by_email(db, user.email):
            raise ConflictError("Email already registered")

        db_user = User(
            name=user.name,
            email=user.email,
            phone=user.phone,
            password_hash=get_password_hash(user.password),
            nationality=user.nationality,
            date_of_birth=user.date_of_birth,
            role=role.value,
            status=UserStatus.ACTIVE.value
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
            return db_user
        except IntegrityError:
            db.rollback()
            raise ConflictError("Email already registered")

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """Check credentials; unknown email and wrong password look the same"""
        user = UserService.get_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")
        if user.status != UserStatus.ACTIVE.value:
            raise ForbiddenError("Account is not active")
        return user


class AuthService:
    @staticmethod
    def issue_tokens(db: Session, user: User) -> TokenPair:
        """Create an access/refresh pair and persist the refresh token hash"""
        access_token = create_access_token(user.id, user.role)
        refresh_token = create_refresh_token(user.id)

        db.add(RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        ))
        db.commit()

        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def register(db: Session, user_data: UserCreate) -> Tuple[User, TokenPair]:
        user = UserService.create_user(db, user_data)
        logger.info("Registered customer %s", user.id)
        return user, AuthService.issue_tokens(db, user)

    @staticmethod
    def login(db: Session, email: str, password: str) -> Tuple[User, TokenPair]:
        user = UserService.authenticate(db, email, password)
        return user, AuthService.issue_tokens(db, user)

    @staticmethod
    @timed("refresh_tokens")
    def refresh(db: Session, refresh_token: str) -> TokenPair:
        """Rotate a refresh token: the presented token is revoked and a new pair issued"""
        decode_refresh_token(refresh_token)

        stored = db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(refresh_token)
        ).populate_existing().with_for_update().first()

        if not stored:
            raise UnauthorizedError("Invalid refresh token")
        if stored.revoked_at is not None:
            logger.warning("Revoked refresh token presented for user %s", stored.user_id)
            raise UnauthorizedError("Token has been revoked")
        if as_utc(stored.expires_at) < utcnow():
            raise UnauthorizedError("Token has expired")

        user = stored.user
        if user.status != UserStatus.ACTIVE.value:
            raise ForbiddenError("Account is not active")

        stored.revoked_at = utcnow()
        tokens = AuthService.issue_tokens(db, user)
        logger.info("Rotated refresh token for user %s", user.id)
        return tokens

    @staticmethod
    def logout(db: Session, refresh_token: Optional[str]) -> None:
        """Revoke the given refresh token if it is still active"""
        if not refresh_token:
            return

        db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.revoked_at.is_(None)
        ).update({RefreshToken.revoked_at: utcnow()}, synchronize_session=False)
        db.commit()
