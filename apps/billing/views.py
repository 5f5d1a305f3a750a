import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import tenant_required
from apps.common.http import json_body, validated

from . import services
from .forms import BillingSessionForm

log = logging.getLogger(__name__)


@csrf_exempt
@require_POST
@tenant_required
def billing_session(request):
    data = validated(BillingSessionForm(json_body(request)))
    result = services.start_billing_session(request.cnpj, data.get("price_id") or None)
    log.info("[billing] API billing_session cnpj=%s kind=%s", request.cnpj, result["kind"])
    return JsonResponse(result)


@require_GET
@tenant_required
def subscription(request):
    return JsonResponse({"subscription": request.tenant.get("subscription")})


@csrf_exempt
@require_POST
@tenant_required
def sync(request):
    return JsonResponse(services.sync_subscription(request.cnpj))


@csrf_exempt
@require_POST
@tenant_required
def cancel(request):
    result = services.cancel_at_period_end(request.cnpj)
    result["message"] = (
        "Cancelamento da assinatura agendado com sucesso. "
        "Você terá acesso até o final do período de cobrança atual."
    )
    return JsonResponse(result)


@require_GET
@tenant_required
def invoices(request):
    return JsonResponse({"invoices": services.list_invoices(request.cnpj)})
