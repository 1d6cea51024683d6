"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes in the standard error envelope; the view never
swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.activity.repositories.django_repository import ActivityDjangoRepository
from modules.core.exceptions import GENERIC_SERVER_DETAIL, error_response
from modules.core.permissions import IsBuyer
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    AlreadyRated,
    InvalidOrderData,
    InvalidOrderStatus,
    OrderDomainError,
    OrderNotFound,
    OrderPersistenceError,
    ProductUnavailable,
    SellerNotFound,
    UnauthorizedOrderAction,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    RateOrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.repositories.django_repository import UserDjangoRepository

_ERROR_STATUS = {
    InvalidOrderData: status.HTTP_400_BAD_REQUEST,
    InvalidOrderStatus: status.HTTP_400_BAD_REQUEST,
    UnauthorizedOrderAction: status.HTTP_403_FORBIDDEN,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    SellerNotFound: status.HTTP_404_NOT_FOUND,
    ProductUnavailable: status.HTTP_409_CONFLICT,
    AlreadyRated: status.HTTP_409_CONFLICT,
    OrderPersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def domain_error_response(exc: OrderDomainError) -> Response:
    """Render a domain error in the standard envelope.

    Storage failures are opaque: the caller only sees a generic message.
    """
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        return error_response(exc.code, GENERIC_SERVER_DETAIL, status_code)
    return error_response(
        exc.code, str(exc), status_code, attr=getattr(exc, "field", None)
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status", "scheduled_delivery_date"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            user_repository=UserDjangoRepository(),
            activity_repository=ActivityDjangoRepository(),
        )

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "create":
            return [IsAuthenticated(), IsBuyer()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        user = self.request.user
        return self._service.list_orders(user.pk, user.role)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        The authenticated buyer places an order with one farmer.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            buyer_id=request.user.pk,
            seller_id=data["seller_id"],
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    unit_price=item.get("unit_price"),
                    notes=item.get("notes", ""),
                )
                for item in data["items"]
            ],
            delivery_address=data["delivery_address"],
            contact_phone=data["contact_phone"],
            scheduled_delivery_date=data["scheduled_delivery_date"],
            scheduled_delivery_time=data.get("scheduled_delivery_time"),
            payment_method=data["payment_method"],
            buyer_notes=data.get("buyer_notes", ""),
        )

        try:
            order = self._service.create_order(dto)
        except OrderDomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Only the caller's own orders (as seller for farmers, as buyer for
        buyers).  Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, request.user.pk)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                order_id=pk,
                new_status=serializer.validated_data["status"],
                acting_user_id=request.user.pk,
                acting_role=request.user.role,
                notes=serializer.validated_data["notes"],
            )
        except OrderDomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id=pk,
                acting_user_id=request.user.pk,
                acting_role=request.user.role,
                reason=serializer.validated_data["reason"],
            )
        except OrderDomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def rate(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/rate/"""
        serializer = RateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.rate_order(
                order_id=pk,
                acting_user_id=request.user.pk,
                acting_role=request.user.role,
                stars=serializer.validated_data["stars"],
                comment=serializer.validated_data["comment"],
            )
        except OrderDomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="can-rate")
    def can_rate(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/can-rate/"""
        allowed = self._service.can_rate(pk, request.user.pk, request.user.role)
        return Response({"can_rate": allowed})

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="stats/summary")
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/summary/"""
        summary = self._service.order_stats(request.user.pk, request.user.role)
        return Response(summary.as_dict())
