"""HTTP views for the orders app.

This module contains DRF API views used by the orders service. Views are
kept intentionally small: they validate requests (via Pydantic), map to
domain DTOs, delegate to the domain service, and return an HTTP response.

The views obtain a configured ``OrderService`` from
``providers.get_order_service()`` which returns HTTP adapter-backed ports
(``HttpInventoryClient``, ``HttpPaymentsClient``, ``HttpProductLookup``) or
in-process stubs depending on runtime settings. This allows tests and local
development to swap implementations without changing view logic.

Errors are rendered as ``{"errorMessage": ..., "errorCode": ...}``:

- ``OrderServiceError`` (not found, upstream business errors, open
  circuits) keeps its own code and status.
- Transport failures talking to a collaborator become 503
  ``UPSTREAM_UNAVAILABLE``.
- Payload validation errors become 400 ``VALIDATION_ERROR``.
"""

import logging

import httpx
from pydantic import ValidationError
from rest_framework import status
from rest_framework.exceptions import ParseError, Throttled
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView, exception_handler

from . import providers
from .domain import OrderRequest, OrderServiceError
from .schemas import ErrorResponseDTO, OrderReadDTO, PlaceOrderDTO, ProductDetailsDTO

logger = logging.getLogger(__name__)


def _error(message: str, code: str, status_code: int) -> Response:
    body = ErrorResponseDTO(error_message=message, error_code=code)
    return Response(body.model_dump(by_alias=True), status=status_code)


def api_exception_handler(exc, context):
    """DRF exception handler rendering framework errors in the API error shape.

    Unparseable bodies become 400 ``VALIDATION_ERROR`` and throttled
    requests 429 ``THROTTLED``; other ``APIException`` subclasses use their
    upper-cased default code. Headers set by DRF (e.g. ``Retry-After``)
    are kept.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ParseError):
        code = "VALIDATION_ERROR"
    elif isinstance(exc, Throttled):
        code = "THROTTLED"
    else:
        code = str(getattr(exc, "default_code", "error")).upper()

    detail = getattr(exc, "detail", None)
    message = str(detail) if detail is not None else str(exc)
    response.data = ErrorResponseDTO(error_message=message, error_code=code).model_dump(by_alias=True)
    return response


def _upstream_unavailable(exc: Exception) -> Response:
    logger.warning("Upstream call failed", extra={"error": str(exc)})
    return _error("Upstream service unavailable", "UPSTREAM_UNAVAILABLE", status.HTTP_503_SERVICE_UNAVAILABLE)


class OrdersPingView(APIView):
    """Simple health-check endpoint for the orders module."""

    def get(self, request):
        return Response({"ok": True})


class PlaceOrderView(APIView):
    """Place an order by orchestrating inventory, persistence and payment.

    The response carries the new order id with HTTP 200 whether the
    payment succeeded or not; the outcome is visible through the order
    status on ``GET /order/<id>``.
    """

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        """Create a new order.

        Args:
            request (Request): DRF request with a JSON body
                ``{productId, quantity, totalAmount, paymentMode}``.

        Returns:
            Response: One of the following responses.
            - 200 with {orderId} when the order was persisted.
            - 400 with VALIDATION_ERROR for invalid payloads.
            - The collaborator's status and code when stock cannot be
              reserved (e.g. 400 INSUFFICIENT_QUANTITY).
            - 503 with UPSTREAM_UNAVAILABLE when a collaborator cannot be
              reached.
        """
        # 1) Pydantic validation
        try:
            dto = PlaceOrderDTO.model_validate(request.data)
        except ValidationError as e:
            return _error(str(e), "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST)

        # 2) Domain
        order_request = OrderRequest(
            product_id=dto.product_id,
            quantity=dto.quantity,
            total_amount=dto.total_amount,
            payment_mode=dto.payment_mode.value,
        )
        try:
            order_id = providers.get_order_service().place_order(order_request)
        except OrderServiceError as e:
            return _error(e.message, e.code, e.status)
        except httpx.HTTPError as e:
            return _upstream_unavailable(e)

        return Response({"orderId": order_id}, status=status.HTTP_200_OK)


class OrderDetailView(APIView):
    """Return an order with its product details fetched fresh."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_id: int):
        try:
            out = providers.get_order_service().get_order_details(order_id)
        except OrderServiceError as e:
            return _error(e.message, e.code, e.status)
        except httpx.HTTPError as e:
            return _upstream_unavailable(e)

        dto = OrderReadDTO(
            order_id=out.order_id,
            order_date=out.order_date,
            order_status=out.status.value,
            amount=out.amount,
            product_details=ProductDetailsDTO(
                product_id=out.product_details.product_id,
                product_name=out.product_details.product_name,
            ),
        )
        return Response(dto.model_dump(mode="json", by_alias=True), status=status.HTTP_200_OK)
