"""Order URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.orders.views import CustomerOrderViewSet, RestaurantOrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("restaurant/orders", RestaurantOrderViewSet, basename="restaurant-order")
router.register("customer/orders", CustomerOrderViewSet, basename="customer-order")

urlpatterns = router.urls
