import logging

from sqlalchemy.orm import Session

from physiobot.core.errors import AuthError, NotFoundError, ValidationError
from physiobot.database.session import commit_or_raise
from physiobot.models.user import User
from physiobot.schemas.user import LoginRequest, LoginResponse, UserCreate, UserResponse
from physiobot.services.auth_service import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.lower().strip()


def to_response(u: User) -> UserResponse:
    return UserResponse(id=int(u.id), name=u.name, email=u.email, created_at=u.created_at.isoformat())


def create_user(db: Session, payload: UserCreate) -> User:
    email = _normalize_email(payload.email)
    if "@" not in email:
        raise ValidationError("Invalid email address.")
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("A user with this email already exists.")

    u = User(email=email, name=payload.name.strip(), hashed_password=hash_password(payload.password))
    db.add(u)
    commit_or_raise(db, "create user")
    db.refresh(u)
    logger.info("Created user %s", u.id)
    return u


def get_user(db: Session, user_id: int) -> User:
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise NotFoundError("user not found")
    return u


def login(db: Session, payload: LoginRequest) -> LoginResponse:
    user = db.query(User).filter(User.email == _normalize_email(payload.email)).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise AuthError("Invalid credentials.")
    token = create_access_token(sub=str(user.id), email=user.email)
    return LoginResponse(access_token=token, token_type="bearer", user_id=int(user.id), email=user.email)
