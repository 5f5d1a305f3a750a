from __future__ import annotations

import logging
from typing import Optional

from django.utils import timezone

from apps.common.errors import Conflict, NotFound
from apps.common.realtime import get_store

log = logging.getLogger(__name__)


def tenant_path(cnpj: str) -> str:
    return f"users/{cnpj}"


def find_tenant(cnpj: str) -> Optional[dict]:
    if not cnpj:
        return None
    return get_store().get(tenant_path(cnpj))


def get_tenant(cnpj: str) -> dict:
    tenant = find_tenant(cnpj)
    if not tenant:
        raise NotFound("Usuário não encontrado")
    return tenant


def _find_cnpj(field: str, value: str) -> Optional[str]:
    # The store has no secondary indexes; scan every tenant
    users = get_store().get("users") or {}
    for cnpj, data in users.items():
        if isinstance(data, dict) and data.get(field) == value:
            return cnpj
    return None


def find_cnpj_by_auth_uid(uid: str) -> Optional[str]:
    return _find_cnpj("auth_uid", uid)


def find_cnpj_by_customer_id(customer_id: str) -> Optional[str]:
    if not customer_id:
        return None
    return _find_cnpj("stripe_customer_id", customer_id)


def ensure_available(cnpj: str) -> None:
    if find_tenant(cnpj) is not None:
        raise Conflict("CNPJ já cadastrado.")


def create_tenant(*, cnpj: str, auth_uid: str, restaurant_name: str, owner_name: str, email: str,
                  cnpj_display: str, address: dict) -> dict:
    record = {
        "auth_uid": auth_uid,
        "restaurant_name": restaurant_name,
        "owner_name": owner_name,
        "email": email,
        "cnpj": cnpj_display,
        "address": address,
        "created_at": timezone.now().isoformat(),
    }
    if not get_store().create(tenant_path(cnpj), record):
        log.warning("[accounts] Lost signup race for cnpj=%s uid=%s", cnpj, auth_uid)
        raise Conflict("CNPJ já cadastrado.")
    log.info("[accounts] Created tenant cnpj=%s uid=%s", cnpj, auth_uid)
    return record


def update_tenant(cnpj: str, values: dict) -> None:
    get_store().update(tenant_path(cnpj), values)
