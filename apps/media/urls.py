from django.urls import path
from . import views

app_name = "media"

urlpatterns = [
    path("api/upload", views.upload, name="upload"),
    path("uploads/<path:path>", views.image_public, name="image_public"),
]
