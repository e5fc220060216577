import logging
from functools import wraps
from flask import request, g
from firebase_admin import auth as firebase_auth
from firebase_admin import firestore

from manage_easy.config.settings import Settings
from manage_easy.middleware.error_middleware import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """Authentication middleware for Firebase ID tokens"""

    @staticmethod
    def extract_token():
        """Bearer header first, then the ?token= query parameter"""
        auth_header = request.headers.get('Authorization', '')
        if auth_header.startswith('Bearer '):
            return auth_header[len('Bearer '):].strip() or None
        return (request.args.get('token') or '').strip() or None

    @staticmethod
    def resolve_user_id(token: str) -> str:
        # Only the Functions emulator honours test tokens
        if Settings.FUNCTIONS_EMULATOR and token.startswith('test-'):
            return Settings.EMULATOR_TEST_USER_ID

        try:
            decoded_token = firebase_auth.verify_id_token(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthenticationError('Invalid token')

        uid = decoded_token.get('uid')
        if not uid:
            raise AuthenticationError('Invalid token')
        return uid

    @staticmethod
    def verify_token(f):
        """Decorator to verify the caller's Firebase token and expose g.user_id"""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            token = AuthMiddleware.extract_token()
            if not token:
                raise AuthenticationError('No token provided')

            g.user_id = AuthMiddleware.resolve_user_id(token)
            return f(*args, **kwargs)

        return decorated_function

    @staticmethod
    def get_current_user_id():
        """Get current user id from request context"""
        return getattr(g, 'user_id', None)


def owner_scope(payload: dict = None) -> str:
    """
    Owner whose board is being edited: explicit ownerId, else the caller.

    Another user's board is reachable only when that user's profile lists the
    caller in ``collaboratorIds``.
    """
    user_id = AuthMiddleware.get_current_user_id()
    owner_id = None
    if payload:
        owner_id = payload.get('ownerId')
    if not owner_id:
        owner_id = request.args.get('ownerId')
    if not isinstance(owner_id, str) or not owner_id.strip():
        return user_id

    owner_id = owner_id.strip()
    if owner_id == user_id:
        return user_id

    profile = firestore.client().collection('users').document(owner_id).get()
    collaborators = (profile.to_dict() or {}).get('collaboratorIds') or []
    if user_id not in collaborators:
        logger.warning(f"User {user_id} denied access to board of {owner_id}")
        raise AuthorizationError('Not authorized to access this board')
    return owner_id
