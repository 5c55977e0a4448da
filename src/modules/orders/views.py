"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets: one for the
restaurant side (listing, details, status updates) and one for the
customer side (listing, details, cancellation).
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.customers.permissions import IsCustomer, get_acting_customer
from modules.orders.exceptions import (
    ConcurrentStatusChange,
    InvalidOrderStatus,
    InvalidTransition,
    OrderNotFound,
    OrderPersistenceError,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.notifications import OutboxStatusNotifier
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import OrderService, TransitionResult
from modules.restaurants.permissions import IsRestaurantOwner, get_acting_restaurant

NOT_FOUND = {"detail": "Order not found."}
CONCURRENT_CHANGE = {
    "detail": "Order status changed concurrently. Reload the order and try again."
}


class _OrderViewSetBase(GenericViewSet):
    """Shared wiring: service construction, filtering, pagination."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            notifier=OutboxStatusNotifier(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Scoped throttles per action."""
        throttle_scope: str | None
        if self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        elif self.action in {"update_status", "cancel"}:
            throttle_scope = "order_status_update"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _paginated(self, queryset, extra=None) -> Response:
        queryset = self.filter_queryset(queryset)
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.paginator.get_paginated_response(serializer.data, extra=extra)

    @staticmethod
    def _transition_response(result: TransitionResult) -> Response:
        return Response(
            {
                "message": result.message,
                "order": OrderSerializer(result.order).data,
            }
        )


class RestaurantOrderViewSet(_OrderViewSetBase):
    """Orders received by the authenticated restaurant."""

    permission_classes = [IsAuthenticated, IsRestaurantOwner]

    def get_queryset(self):
        restaurant = get_acting_restaurant(self.request.user)
        if restaurant is None:
            return Order.objects.none()
        return self._service.list_restaurant_orders(restaurant.id)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/restaurant/orders/?status=

        Newest first.  An empty result carries a friendly message.
        """
        restaurant = get_acting_restaurant(request.user)
        queryset = self.get_queryset()
        extra = None
        if not queryset.exists():
            extra = {"message": f"No orders yet for {restaurant.name}"}
        return self._paginated(queryset, extra=extra)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/restaurant/orders/{pk}/"""
        restaurant = get_acting_restaurant(request.user)
        try:
            order = self._service.get_restaurant_order(pk, restaurant.id)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/restaurant/orders/{pk}/status/

        Body: ``{"status": "...", "restaurant_note": "..."}``.  The note is
        mandatory when cancelling.
        """
        payload = StatusUpdateSerializer(data=request.data)
        if not payload.is_valid():
            if "status" in payload.errors or "non_field_errors" in payload.errors:
                return Response(
                    {"detail": "Field 'status' is required."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            return Response(payload.errors, status=status.HTTP_400_BAD_REQUEST)
        data = payload.validated_data

        restaurant = get_acting_restaurant(request.user)
        try:
            result = self._service.transition_status(
                order_id=pk,
                restaurant_id=restaurant.id,
                requested_status=data["status"],
                note=data.get("restaurant_note"),
                changed_by=request.user,
            )
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransition as exc:
            return Response(
                {"detail": str(exc), "valid_statuses": exc.valid_statuses},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ConcurrentStatusChange:
            return Response(CONCURRENT_CHANGE, status=status.HTTP_409_CONFLICT)
        except OrderPersistenceError as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return self._transition_response(result)


class CustomerOrderViewSet(_OrderViewSetBase):
    """Orders placed by the authenticated customer."""

    permission_classes = [IsAuthenticated, IsCustomer]

    def get_queryset(self):
        customer = get_acting_customer(self.request.user)
        if customer is None:
            return Order.objects.none()
        return self._service.list_customer_orders(customer.id)

    def list(self, request: Request) -> Response:
        """GET /api/v1/customer/orders/?status="""
        return self._paginated(self.get_queryset())

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/customer/orders/{pk}/"""
        customer = get_acting_customer(request.user)
        try:
            order = self._service.get_customer_order(pk, customer.id)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/customer/orders/{pk}/cancel/

        Allowed while the order is ``new`` or ``received``.
        """
        customer = get_acting_customer(request.user)
        try:
            result = self._service.cancel_by_customer(
                order_id=pk,
                customer_id=customer.id,
                changed_by=request.user,
            )
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ConcurrentStatusChange:
            return Response(CONCURRENT_CHANGE, status=status.HTTP_409_CONFLICT)
        except OrderPersistenceError as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return self._transition_response(result)
