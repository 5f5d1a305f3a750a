from django.urls import path
from . import views_public as public_views

app_name = "menu"

urlpatterns = [
    path("", public_views.menu_public, name="menu"),
    path("order", public_views.order_public, name="order"),
]
