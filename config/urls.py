from django.http import HttpResponse
from django.urls import path, include

urlpatterns = [
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
    path("auth/", include("apps.accounts.auth_urls")),
    path("accounts/", include("apps.accounts.urls")),
    path("billing/", include("apps.billing.urls")),
    path("stripe/", include("apps.billing.webhooks")),  # /stripe/webhook/
    path("catalog/", include("apps.catalog.urls")),
    path("menu/", include("apps.catalog.urls_public")),
    path("", include("apps.media.urls")),
]
