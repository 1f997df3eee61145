from django.urls import path
from .views import OrdersPingView
from .views import PlaceOrderView, OrderDetailView
app_name = "orders"

urlpatterns = [
    path("ping/", OrdersPingView.as_view(), name="ping"),
    path("placeOrder", PlaceOrderView.as_view(), name="place-order"),  # POST create
    path("<int:order_id>", OrderDetailView.as_view(), name="order-detail"),
]
