from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.common.errors import Conflict, InvalidInput
from apps.common.http import client_ip, json_body, validated
from apps.common.rate_limit import limit_signups

from . import identity
from .forms import AddressForm, SignupForm
from .tenants import create_tenant, ensure_available

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def signup(request: HttpRequest) -> JsonResponse:
    limit_signups(client_ip(request))

    data = json_body(request)
    cleaned = validated(SignupForm(data))
    if not isinstance(data.get("address"), dict):
        raise InvalidInput("Endereço é obrigatório.", fields={"address": ["Campo obrigatório."]})
    address = validated(AddressForm(data["address"]))

    cnpj = cleaned["cnpj_digits"]
    ensure_available(cnpj)

    uid = identity.create_user(cleaned["email"], cleaned["password"], cleaned["owner_name"])
    try:
        create_tenant(
            cnpj=cnpj,
            auth_uid=uid,
            restaurant_name=cleaned["restaurant_name"],
            owner_name=cleaned["owner_name"],
            email=cleaned["email"],
            cnpj_display=cleaned["cnpj"],
            address=address,
        )
    except Conflict:
        # Another signup claimed the CNPJ while this login was being created
        identity.delete_user(uid)
        raise
    except Exception:
        # Without the tenant record the login would be orphaned
        logger.exception("[accounts] Tenant write failed for cnpj=%s; removing uid=%s", cnpj, uid)
        identity.delete_user(uid)
        raise
    logger.info("[accounts] Signup complete cnpj=%s email=%s", cnpj, cleaned["email"])
    return JsonResponse({"message": "Usuário criado com sucesso!", "id": cnpj}, status=201)
