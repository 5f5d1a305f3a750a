import copy
import itertools
import types

import pytest
from django.core.cache import cache

import apps.common.realtime as realtime
from apps.accounts import identity
from apps.common.errors import AuthenticationFailed


CNPJ = "12345678000190"


class MemoryStore:
    """Dict-backed stand-in for the realtime database."""

    def __init__(self):
        self.data = {}
        self._ids = itertools.count(1)
        self.listeners = []

    @staticmethod
    def _parts(path):
        return [p for p in path.split("/") if p]

    def get(self, path):
        node = self.data
        for part in self._parts(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)

    def set(self, path, value):
        *parents, leaf = self._parts(path)
        node = self.data
        for part in parents:
            node = node.setdefault(part, {})
        if value is None:
            node.pop(leaf, None)
        else:
            node[leaf] = copy.deepcopy(value)

    def update(self, path, values):
        for key, value in values.items():
            self.set(f"{path}/{key}", value)

    def push(self, path, value):
        key = f"-rec{next(self._ids):04d}"
        self.set(f"{path}/{key}", value)
        return key

    def create(self, path, value):
        if self.get(path) is not None:
            return False
        self.set(path, value)
        return True

    def delete(self, path):
        self.set(path, None)

    def listen(self, path, callback):
        callback(types.SimpleNamespace(event_type="put", path="/", data=self.get(path)))
        registration = types.SimpleNamespace(closed=False)
        registration.close = lambda: setattr(registration, "closed", True)
        self.listeners.append(registration)
        return registration


@pytest.fixture(autouse=True)
def store(monkeypatch):
    s = MemoryStore()
    monkeypatch.setattr(realtime, "_store", s)
    cache.clear()
    return s


@pytest.fixture
def tenant(store):
    store.set(f"users/{CNPJ}", {
        "auth_uid": "uid-owner",
        "restaurant_name": "Cantina da Praça",
        "owner_name": "Maria Souza",
        "email": "maria@example.com",
        "cnpj": "12.345.678/0001-90",
        "address": {},
    })
    return CNPJ


@pytest.fixture
def auth(monkeypatch, tenant):
    tokens = {"token-owner": "uid-owner"}

    def verify(token):
        if token not in tokens:
            raise AuthenticationFailed("Token de autenticação inválido.")
        return tokens[token]

    monkeypatch.setattr(identity, "verify_bearer_token", verify)
    return {"HTTP_AUTHORIZATION": "Bearer token-owner"}


class DummyStripe:
    def __init__(self):
        self.customers = {}
        self.checkout_sessions = []
        self.portal_sessions = []
        self.subscriptions = {}
        self.modified = []
        self.invoices = []

    def Customer_create(self, **kw):
        cid = f"cus_{len(self.customers)+1:06d}"
        self.customers[cid] = kw
        return {"id": cid}

    def Customer_list(self, email=None, limit=10):
        data = [{"id": cid, **kw} for cid, kw in self.customers.items() if kw.get("email") == email]
        return {"data": data[:limit]}

    def Checkout_create(self, **kw):
        self.checkout_sessions.append(kw)
        sid = f"cs_test_{len(self.checkout_sessions)}"
        return {"id": sid, "url": f"https://checkout.stripe.test/{sid}"}

    def Portal_create(self, **kw):
        self.portal_sessions.append(kw)
        return {"id": "bps_1", "url": "https://billing.stripe.test/p/session"}

    def Subscription_retrieve(self, sub_id):
        return self.subscriptions[sub_id]

    def Subscription_list(self, customer=None, status=None, limit=10):
        data = [s for s in self.subscriptions.values() if s["customer"] == customer and s["status"] == status]
        return {"data": data[:limit]}

    def Subscription_modify(self, sub_id, **kw):
        self.modified.append((sub_id, kw))
        return {"id": sub_id, **kw}

    def Invoice_list(self, customer=None, limit=10):
        return {"data": [i for i in self.invoices if i["customer"] == customer][:limit]}


def patch_stripe(monkeypatch):
    ds = DummyStripe()
    import apps.billing.services as s
    monkeypatch.setattr(s.stripe, "Customer", types.SimpleNamespace(create=ds.Customer_create, list=ds.Customer_list))
    monkeypatch.setattr(s.stripe, "checkout", types.SimpleNamespace(Session=types.SimpleNamespace(create=ds.Checkout_create)))
    monkeypatch.setattr(s.stripe, "billing_portal", types.SimpleNamespace(Session=types.SimpleNamespace(create=ds.Portal_create)))
    monkeypatch.setattr(s.stripe, "Subscription", types.SimpleNamespace(
        retrieve=ds.Subscription_retrieve, list=ds.Subscription_list, modify=ds.Subscription_modify,
    ))
    monkeypatch.setattr(s.stripe, "Invoice", types.SimpleNamespace(list=ds.Invoice_list))
    return ds


@pytest.fixture
def dummy_stripe(monkeypatch):
    return patch_stripe(monkeypatch)


def subscription(sub_id="sub_1", customer="cus_000001", status="active", metadata=None, **extra):
    sub = {
        "id": sub_id,
        "object": "subscription",
        "customer": customer,
        "status": status,
        "cancel_at_period_end": False,
        "current_period_end": 1767225600,
        "metadata": metadata or {},
        "items": {"data": [{"price": {"id": "price_basic"}}]},
    }
    sub.update(extra)
    return sub
