import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.common.http import json_body, validated

from .decorators import tenant_required
from .forms import SettingsForm
from .tenants import get_tenant, update_tenant

log = logging.getLogger(__name__)

# Never echoed back to the dashboard
_PRIVATE = {"auth_uid"}


def _public_profile(cnpj: str, tenant: dict) -> dict:
    data = {k: v for k, v in tenant.items() if k not in _PRIVATE}
    data["id"] = cnpj
    return data


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def profile(request):
    if request.method == "GET":
        return JsonResponse(_public_profile(request.cnpj, request.tenant))
    values = validated(SettingsForm(json_body(request), initial=request.tenant))
    if values:
        update_tenant(request.cnpj, values)
        log.info("[accounts] Settings updated cnpj=%s fields=%s", request.cnpj, sorted(values))
    return JsonResponse(_public_profile(request.cnpj, get_tenant(request.cnpj)))
