from django.urls import include, path

urlpatterns = [
    path("order/", include("apps.orders.urls")),
    path("", include("apps.monitoring.urls")),
]
