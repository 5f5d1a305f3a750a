from django.urls import path
from . import views_admin as admin_views

app_name = "catalog"

urlpatterns = [
    path("categories", admin_views.categories, name="categories"),
    path("categories/<str:record_id>", admin_views.category_detail, name="category_detail"),
    path("categories/<str:record_id>/delete", admin_views.delete_category, name="delete_category"),
    path("addons", admin_views.addons, name="addons"),
    path("addons/<str:record_id>", admin_views.addon_detail, name="addon_detail"),
    path("addons/<str:record_id>/delete", admin_views.delete_addon, name="delete_addon"),
    path("products", admin_views.products, name="products"),
    path("products/<str:record_id>", admin_views.product_detail, name="product_detail"),
    path("products/<str:record_id>/delete", admin_views.delete_product, name="delete_product"),
    path("images", admin_views.images, name="images"),
]
