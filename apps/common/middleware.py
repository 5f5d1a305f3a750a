import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse

from .errors import ApiError

log = logging.getLogger(__name__)


class ApiErrorMiddleware:
    """Turn exceptions escaping a view into JSON error responses.

    ApiError subclasses keep their status and message. Anything else is
    logged with its traceback and answered with a generic 500 body.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ApiError):
            if exception.status >= 500:
                log.error("[api] %s %s -> %s: %s", request.method, request.path, exception.status, exception.message)
            else:
                log.info("[api] %s %s -> %s: %s", request.method, request.path, exception.status, exception.message)
            return JsonResponse(exception.as_dict(), status=exception.status)
        if isinstance(exception, (Http404, PermissionDenied)):
            return None
        log.exception("[api] Unhandled error on %s %s", request.method, request.path)
        return JsonResponse(ApiError().as_dict(), status=500)
