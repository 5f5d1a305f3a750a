from functools import wraps

from apps.common.errors import AuthenticationFailed

from . import identity
from .tenants import find_cnpj_by_auth_uid, get_tenant


def _bearer_token(request) -> str:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationFailed("Cabeçalho Authorization ausente ou inválido.")
    return token.strip()


def tenant_required(view):
    """Resolve the caller's restaurant from a Firebase ID token.

    Sets ``request.auth_uid``, ``request.cnpj`` and ``request.tenant``.
    """

    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        uid = identity.verify_bearer_token(_bearer_token(request))
        cnpj = find_cnpj_by_auth_uid(uid)
        if not cnpj:
            raise AuthenticationFailed("Usuário não encontrado no banco de dados.")
        request.auth_uid = uid
        request.cnpj = cnpj
        request.tenant = get_tenant(cnpj)
        return view(request, *args, **kwargs)

    return _wrapped
