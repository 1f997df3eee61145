"""HTTP adapter clients with circuit breakers, retries, and context headers.

This module implements concrete HTTP clients for the domain ports using
``httpx``. Downstream services are addressed by logical name
(``PRODUCT-SERVICE``, ``PAYMENT-SERVICE``) and resolved to a base URL via
``settings.SERVICE_REGISTRY``. It adds:

- Request correlation: propagates ``X-Request-ID`` from a ContextVar set by
    the gateway middleware.
- Circuit breaker per downstream service to avoid hammering unhealthy
    dependencies, with HALF_OPEN probing after a timeout.
- Retry with exponential backoff for transport errors and 5xx, applied to
    idempotent reads only. Stock reduction and payment are sent once.
- Error decoding: ``{"errorMessage", "errorCode"}`` bodies returned by the
    collaborator services are raised as ``UpstreamServiceError``.
"""

import logging
import threading
import time
from decimal import Decimal
from typing import Dict, Optional

import httpx
from django.conf import settings
from django.utils.module_loading import import_string
from pydantic import ValidationError

from .domain import (
    InventoryPort,
    PaymentResult,
    PaymentsPort,
    ProductDetails,
    ProductLookupPort,
    UpstreamServiceError,
    UpstreamUnavailable,
)
from .schemas import ErrorResponseDTO, PaymentRequestDTO, ProductResponseDTO

logger = logging.getLogger(__name__)

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")

PRODUCT_SERVICE = "PRODUCT-SERVICE"
PAYMENT_SERVICE = "PAYMENT-SERVICE"


# ---------------- Circuit Breaker ---------------- #

class CircuitBreaker:
    """Minimal circuit breaker with CLOSED/OPEN/HALF_OPEN states.

    Transitions:
    - CLOSED → OPEN when failures reach ``fail_threshold``.
    - OPEN → HALF_OPEN after ``reset_timeout`` seconds.
    - HALF_OPEN → CLOSED on a successful probe; stays HALF_OPEN while a
      single probe is in flight; transitions back to OPEN on failure.

    This implementation is thread-safe via an internal lock.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"  # CLOSED | OPEN | HALF_OPEN
        self._opened_at = 0.0
        self._half_open_probe_in_flight = False

    @property
    def state(self) -> str:
        """Current breaker state with time-based transition handling."""
        with self._lock:
            if self._state == "OPEN" and (time.monotonic() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._half_open_probe_in_flight = False
            return self._state

    def before_call(self) -> str:
        """Check and update state before a protected call.

        Returns:
            str: The state at call time.

        Raises:
            UpstreamUnavailable: 'CIRCUIT_OPEN' if the circuit is OPEN or a
                HALF_OPEN probe is already in flight.
        """
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise UpstreamUnavailable(f"{self.name} circuit is open", "CIRCUIT_OPEN")
            if st == "HALF_OPEN":
                # allow only one concurrent probe
                if self._half_open_probe_in_flight:
                    raise UpstreamUnavailable(f"{self.name} circuit is probing", "CIRCUIT_OPEN")
                self._half_open_probe_in_flight = True
            return st

    def on_success(self):
        """Record a successful call and close/reset the breaker."""
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._half_open_probe_in_flight = False

    def on_failure(self):
        """Record a failed call and open the breaker if threshold exceeded."""
        with self._lock:
            self._failures += 1
            if self._state == "HALF_OPEN" or (
                self._failures >= self.fail_threshold and self._state != "OPEN"
            ):
                self._state = "OPEN"
                self._opened_at = time.monotonic()
                self._half_open_probe_in_flight = False

    def on_finish(self):
        """Release any HALF_OPEN probe flag after a call finishes."""
        with self._lock:
            if self._state == "HALF_OPEN":
                self._half_open_probe_in_flight = False


_breakers: Dict[str, CircuitBreaker] = {}
_breakers_lock = threading.Lock()


def get_breaker(service_name: str) -> CircuitBreaker:
    """Return the process-wide breaker for ``service_name``."""
    with _breakers_lock:
        cb = _breakers.get(service_name)
        if cb is None:
            cb = CircuitBreaker(
                service_name,
                getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
                getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
            )
            _breakers[service_name] = cb
        return cb


def reset_breakers() -> None:
    with _breakers_lock:
        _breakers.clear()


# ---------------- Helpers ---------------- #

def resolve_service(service_name: str) -> str:
    """Map a logical service name to its base URL.

    Raises:
        UpstreamUnavailable: 'SERVICE_NOT_REGISTERED' for unknown names.
    """
    base_url = getattr(settings, "SERVICE_REGISTRY", {}).get(service_name)
    if not base_url:
        raise UpstreamUnavailable(f"No endpoint registered for {service_name}", "SERVICE_NOT_REGISTERED")
    return base_url.rstrip("/")


def _request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras.

    Args:
        extra: Optional dict of additional headers to include.

    Returns:
        dict: Final headers dictionary for the outgoing request.
    """
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy():
    """Return retry configuration as (max_retries, backoff_base_seconds)."""
    return (
        getattr(settings, "HTTP_RETRY_MAX", 3),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
    )


def _is_success(resp) -> bool:
    return 200 <= resp.status_code < 300


def decode_error(resp) -> UpstreamServiceError:
    """Turn a non-2xx collaborator response into an ``UpstreamServiceError``.

    Bodies shaped like ``{"errorMessage": ..., "errorCode": ...}`` keep
    their message, code and the response status. Anything else is reported
    as INTERNAL_SERVER_ERROR with status 500.
    """
    try:
        body = ErrorResponseDTO.model_validate(resp.json())
    except ValueError:
        return UpstreamServiceError("Unreadable error response", "INTERNAL_SERVER_ERROR", 500)
    return UpstreamServiceError(body.error_message, body.error_code, resp.status_code)


# ---------------- Base client ---------------- #

class ServiceClient:
    """Shared plumbing for clients of a logically named service."""

    service_name: str = ""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self._base_url = base_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    @property
    def base_url(self) -> str:
        return (self._base_url or resolve_service(self.service_name)).rstrip("/")

    def _send(self, method: str, path: str, *, retry: bool = False, **kwargs):
        """Send one request through the service's circuit breaker.

        Transport errors and 5xx responses count as circuit failures; any
        other status is a business outcome returned to the caller. With
        ``retry`` set, failures are retried with exponential backoff.

        Returns:
            The last response received (possibly 5xx after retries).

        Raises:
            UpstreamUnavailable: If the circuit is open or the service is
                not registered.
            httpx.RequestError: For network/transport errors after retries.
        """
        url = f"{self.base_url}{path}"
        max_retries, backoff = _retry_policy() if retry else (0, 0.0)
        tries = 0

        breaker = get_breaker(self.service_name)
        state = breaker.before_call()
        headers = _request_headers({"X-Circuit-State": state, "X-Retry-Count": "0"})

        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = getattr(client, method)(url, headers=headers, **kwargs)
                        if resp.status_code < 500:
                            breaker.on_success()
                            return resp
                    except httpx.RequestError as e:
                        exc = e

                    if tries >= max_retries:
                        breaker.on_failure()
                        if exc:
                            raise exc
                        return resp

                    tries += 1
                    headers["X-Retry-Count"] = str(tries)
                    logger.warning(
                        "Retrying %s %s",
                        method.upper(),
                        url,
                        extra={"service": self.service_name, "attempt": tries},
                    )
                    sleep_s = backoff * (2 ** (tries - 1))
                    cap = getattr(settings, "HTTP_RETRY_MAX_SLEEP", 0.5)
                    time.sleep(min(sleep_s, cap))
        finally:
            breaker.on_finish()


# ---------------- Inventory Adapter ---------------- #

class HttpInventoryClient(ServiceClient, InventoryPort):
    """Reserves stock through the product service."""

    service_name = PRODUCT_SERVICE

    def reduce(self, product_id: int, quantity: int) -> None:
        """Reduce the available quantity of a product.

        Sends ``PUT /product/reduceQuantity/{product_id}?quantity=N`` once.

        Raises:
            UpstreamServiceError: Decoded from any non-2xx response, e.g.
                INSUFFICIENT_QUANTITY or PRODUCT_NOT_FOUND.
            UpstreamUnavailable: If the circuit is open.
            httpx.RequestError: For network/transport errors.
        """
        resp = self._send("put", f"/product/reduceQuantity/{product_id}", params={"quantity": quantity})
        if not _is_success(resp):
            raise decode_error(resp)


# ---------------- Payments Adapter ---------------- #

class HttpPaymentsClient(ServiceClient, PaymentsPort):
    """Charges orders through the payment service.

    Every failure mode (declined charge, error status, transport error,
    open circuit) is reported as ``PaymentResult.failure``.
    """

    service_name = PAYMENT_SERVICE

    def pay(self, order_id: int, amount: Decimal, payment_mode: str) -> PaymentResult:
        payload = PaymentRequestDTO(
            order_id=order_id, amount=amount, payment_mode=payment_mode
        ).model_dump(mode="json", by_alias=True)

        try:
            resp = self._send("post", "/payment", json=payload)
        except UpstreamUnavailable as e:
            logger.warning("Payment service unavailable", extra={"order_id": order_id, "error": e.code})
            return PaymentResult.failure(e.code)
        except httpx.HTTPError as e:
            logger.warning("Payment request failed", extra={"order_id": order_id, "error": str(e)})
            return PaymentResult.failure("PAYMENT_SERVICE_UNREACHABLE")

        if not _is_success(resp):
            err = decode_error(resp)
            return PaymentResult.failure(err.code)

        reference = (resp.text or "").strip().strip('"')
        return PaymentResult.success(reference or None)


# ---------------- Product lookup Adapter ---------------- #

class HttpProductLookup(ServiceClient, ProductLookupPort):
    """Reads product details from the product service, with retries."""

    service_name = PRODUCT_SERVICE

    def get_product_by_id(self, product_id: int) -> ProductDetails:
        """Fetch ``GET /product/{product_id}`` and keep its id and name.

        Raises:
            UpstreamServiceError: Decoded from a non-2xx response, or
                'INVALID_RESPONSE' (502) for a malformed product body.
            UpstreamUnavailable: If the circuit is open.
            httpx.RequestError: For network/transport errors after retries.
        """
        resp = self._send("get", f"/product/{product_id}", retry=True)
        if not _is_success(resp):
            raise decode_error(resp)
        try:
            dto = ProductResponseDTO.model_validate(resp.json())
        except (ValidationError, ValueError):
            raise UpstreamServiceError("Malformed product response", "INVALID_RESPONSE", 502)
        return ProductDetails(product_id=dto.product_id, product_name=dto.product_name)
