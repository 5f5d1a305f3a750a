import logging
import threading

import firebase_admin
from firebase_admin import credentials
from django.conf import settings

log = logging.getLogger(__name__)

_lock = threading.Lock()
_app = None


def get_app() -> firebase_admin.App:
    """Initialise the Firebase Admin SDK once per process."""
    global _app
    if _app is not None:
        return _app
    with _lock:
        if _app is None:
            options = {}
            if settings.FIREBASE_DATABASE_URL:
                options["databaseURL"] = settings.FIREBASE_DATABASE_URL
            if settings.FIREBASE_CREDENTIALS:
                cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
            else:
                cred = credentials.ApplicationDefault()
            _app = firebase_admin.initialize_app(cred, options)
            log.info("[firebase] Admin SDK initialized (database=%s)", settings.FIREBASE_DATABASE_URL or "-")
    return _app
