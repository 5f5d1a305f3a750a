from django.urls import path
from . import views

app_name = "billing"

urlpatterns = [
    path("session", views.billing_session, name="session"),
    path("subscription", views.subscription, name="subscription"),
    path("sync", views.sync, name="sync"),
    path("cancel", views.cancel, name="cancel"),
    path("invoices", views.invoices, name="invoices"),
]
