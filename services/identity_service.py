"""
Per-request identity resolution.

A caller is either an authenticated user (Firebase ID token, or the
`X-User-ID` header in development mode), an anonymous shadow identity
(cookie or header), or nobody.
"""
import os
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Depends, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import config
from database import get_db
from models.User import User
from utils.clock import utcnow
from utils.errors import UnauthorizedError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.ownership import Owner

logger = get_logger("identity")

MAX_DISPLAY_NAME_LENGTH = 50

_initialized = False


def initialize_firebase_admin():
    """Initialise the Firebase Admin SDK once, from the credentials file or the ambient environment."""
    global _initialized
    if _initialized:
        return
    cred_path = config.FIREBASE_CREDENTIALS_PATH
    if os.path.exists(cred_path):
        firebase_admin.initialize_app(credentials.Certificate(cred_path))
        logger.info("Firebase Admin initialised with %s", cred_path)
    elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        firebase_admin.initialize_app()
        logger.info("Firebase Admin initialised from GOOGLE_APPLICATION_CREDENTIALS")
    else:
        raise UnauthorizedError("Token verification is not configured")
    _initialized = True


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str] = None
    shadow_id: Optional[str] = None

    @property
    def owner(self) -> Optional[Owner]:
        # an authenticated user always wins over a leftover shadow id
        if self.user_id:
            return Owner.user(self.user_id)
        if self.shadow_id:
            return Owner.shadow(self.shadow_id)
        return None


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def _shadow_id(request: Request) -> Optional[str]:
    value = request.cookies.get(config.SHADOW_USER_COOKIE) or request.headers.get(config.SHADOW_USER_HEADER)
    return value.strip() if value and value.strip() else None


def get_or_create_user_from_claims(db: Session, claims: dict) -> User:
    uid = claims["uid"]
    user = db.query(User).filter(User.firebase_uid == uid).first()
    if user:
        return user

    email = claims.get("email")
    now = utcnow()
    user = User(
        id=generate_id("user"),
        firebase_uid=uid,
        email=email,
        name=claims.get("name") or (email.split("@")[0] if email else "Traveler"),
        profile_image_url=claims.get("picture"),
        locale=(claims.get("locale") or "en")[:10],
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent first request created the row
        db.rollback()
        existing = db.query(User).filter(User.firebase_uid == uid).first()
        if existing is None:
            raise ValidationError("Email is already registered to another account")
        return existing
    logger.info("Created user %s for firebase uid %s", user.id, uid)
    return user


def get_or_create_dev_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user:
        return user
    now = utcnow()
    user = User(id=user_id, name=user_id, created_at=now, updated_at=now)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return db.get(User, user_id)
    logger.info("Created development user %s", user_id)
    return user


def resolve_identity(request: Request, db: Session) -> Identity:
    token = _bearer_token(request)
    if token:
        initialize_firebase_admin()
        try:
            claims = auth.verify_id_token(token)
        except (ValueError, auth.InvalidIdTokenError, auth.CertificateFetchError) as e:
            # an invalid token still lets the caller act as their shadow identity
            logger.warning("Rejected ID token on %s: %s", request.url.path, e)
            return Identity(shadow_id=_shadow_id(request))
        return Identity(user_id=get_or_create_user_from_claims(db, claims).id)

    if config.ALLOW_DEV_AUTH:
        dev_user = request.headers.get(config.DEV_USER_HEADER)
        if dev_user and dev_user.strip():
            return Identity(user_id=get_or_create_dev_user(db, dev_user.strip()).id)

    return Identity(shadow_id=_shadow_id(request))


# ---------- FastAPI dependencies ----------

def get_identity(request: Request, db: Session = Depends(get_db)) -> Identity:
    return resolve_identity(request, db)


def require_owner(identity: Identity = Depends(get_identity)) -> Owner:
    """Caller able to own trips: an authenticated user or a shadow identity."""
    owner = identity.owner
    if owner is None:
        raise UnauthorizedError()
    return owner


def require_user(identity: Identity = Depends(get_identity)) -> str:
    if not identity.user_id:
        raise UnauthorizedError()
    return identity.user_id


# ---------- Account ----------

def update_profile(db: Session, user_id: str, display_name: str,
                   profile_image_url: Optional[str] = None, locale: Optional[str] = None) -> User:
    name = (display_name or "").strip()
    if not name:
        raise ValidationError("Display name is required")
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValidationError(f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters")

    user = db.get(User, user_id)
    if not user:
        raise UnauthorizedError("Unknown user")
    user.display_name = name
    if profile_image_url is not None:
        user.profile_image_url = profile_image_url or None
    if locale:
        user.locale = locale[:10]
    db.commit()
    db.refresh(user)
    logger.info("Updated profile of user %s", user_id)
    return user
