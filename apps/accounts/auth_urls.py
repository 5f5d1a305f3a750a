from django.urls import path
from . import auth_views as views


app_name = "auth"

urlpatterns = [
    path("signup", views.signup, name="signup"),
]
