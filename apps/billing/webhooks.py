import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.urls import path
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
import stripe

from apps.common.errors import SignatureInvalid

from .services import reconcile_event

log = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def webhook(request):
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        log.error("[webhook] STRIPE_WEBHOOK_SECRET is not set")
        return JsonResponse({"error": "Webhook secret not configured"}, status=500)

    payload = request.body
    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    try:
        stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=secret)
    except (ValueError, stripe.SignatureVerificationError) as e:
        log.warning("[webhook] Signature verification failed: %s", e)
        err = SignatureInvalid(f"Webhook Error: {e}")
        return JsonResponse(err.as_dict(), status=err.status)
    # Reconcile from the verified payload as plain dicts
    event = json.loads(payload)

    try:
        cnpj = reconcile_event(event)
    except Exception:
        # Stripe redelivers on non-2xx; nothing is retried here
        log.exception("[webhook] Error processing event %s (%s)", event.get("id"), event["type"])
        return JsonResponse({"error": "Internal server error during webhook processing."}, status=500)
    log.info("[webhook] Event %s (%s) reconciled to cnpj=%s", event.get("id"), event["type"], cnpj)
    return JsonResponse({"received": True})


urlpatterns = [
    path("webhook/", webhook, name="stripe_webhook"),
]
