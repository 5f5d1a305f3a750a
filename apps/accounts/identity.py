import logging

from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from apps.common.errors import AuthenticationFailed, Conflict, InvalidInput, UpstreamError
from apps.common.firebase import get_app

log = logging.getLogger(__name__)


def create_user(email: str, password: str, display_name: str) -> str:
    """Create the login for a new restaurant owner and return its uid."""
    try:
        record = auth.create_user(email=email, password=password, display_name=display_name, app=get_app())
    except auth.EmailAlreadyExistsError:
        raise Conflict("Este email já está em uso.")
    except ValueError as e:
        # Raised client-side for malformed email or passwords under 6 chars
        raise InvalidInput(str(e))
    except FirebaseError as e:
        log.error("[identity] create_user failed for %s: %s", email, e)
        raise UpstreamError(str(e))
    log.info("[identity] Created auth user uid=%s email=%s", record.uid, email)
    return record.uid


def delete_user(uid: str) -> None:
    try:
        auth.delete_user(uid, app=get_app())
    except FirebaseError:
        log.exception("[identity] Failed to delete auth user uid=%s", uid)


def verify_bearer_token(token: str) -> str:
    try:
        decoded = auth.verify_id_token(token, app=get_app())
    except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError, auth.UserDisabledError):
        raise AuthenticationFailed("Token de autenticação inválido.")
    except FirebaseError as e:
        log.error("[identity] Token verification failed: %s", e)
        raise UpstreamError(str(e))
    return decoded["uid"]
