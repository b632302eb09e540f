"""Caller identity resolution.

Handlers only ever see an ``Identity``; how it was obtained (a verified
Firebase ID token in production, demo headers in development) stays here.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from firebase_admin import auth as fb_auth, credentials, initialize_app
from flask import current_app, request
from sqlalchemy.exc import IntegrityError

from errors import Unauthorized
from models import db, User

logger = logging.getLogger(__name__)

firebase_initialized = False


@dataclass(frozen=True)
class Identity:
    id: str
    uid: str
    email: str
    name: Optional[str] = None


def init_firebase(app):
    global firebase_initialized
    if firebase_initialized:
        return
    cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
    if os.path.exists(cred_path):
        cred = credentials.Certificate(cred_path)
        initialize_app(cred)
        firebase_initialized = True
        logger.info("firebase identity provider initialized")
    else:
        logger.warning("firebase credentials not found at %s; using demo headers", cred_path)


def _email_allowed(email):
    domains = [d.strip().lower() for d in current_app.config.get('ALLOWED_EMAIL_DOMAINS', '').split(',') if d.strip()]
    if not domains:
        return True
    return any(email.lower().endswith(d) for d in domains)


def _load_or_provision(uid, email, name):
    user = User.query.filter_by(uid=uid).first()
    if not user:
        user = User(uid=uid, email=email, name=name or email.split('@')[0])
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # email already belongs to another uid
            db.session.rollback()
            logger.info("rejected uid %s: email %s is already registered", uid, email)
            return None
        logger.info("provisioned user %s for uid %s", user.id, uid)
    return Identity(id=user.id, uid=user.uid, email=user.email, name=user.name)


def resolve_caller_identity(req) -> Optional[Identity]:
    """Return the identity behind ``req`` or None for anonymous callers."""
    dev_mode = (not firebase_initialized) or current_app.config.get('ENV', 'development') != 'production'
    if dev_mode:
        uid = req.headers.get('X-Demo-UID')
        if not uid:
            return None
        email = req.headers.get('X-Demo-Email', f'{uid}@example.com')
        name = req.headers.get('X-Demo-Name')
    else:
        token = req.headers.get('Authorization', '').replace('Bearer ', '')
        if not token:
            return None
        try:
            decoded = fb_auth.verify_id_token(token)
        except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.ExpiredIdTokenError, fb_auth.RevokedIdTokenError) as e:
            logger.info("rejected id token: %s", e)
            return None
        uid = decoded['uid']
        email = decoded.get('email') or f'{uid}@example.com'
        name = decoded.get('name')
    if not _email_allowed(email):
        logger.info("rejected identity %s: email domain not allowed", uid)
        return None
    return _load_or_provision(uid, email, name)


def require_identity() -> Identity:
    identity = resolve_caller_identity(request)
    if identity is None:
        raise Unauthorized()
    return identity
