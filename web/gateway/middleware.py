"""Gateway middleware: request identifiers, access logging, body limits.

``RequestIdMiddleware`` ensures every incoming HTTP request carries a
request identifier. The identifier is read from the incoming
``X-Request-Id`` header when provided by the client, or generated
server-side otherwise. It is stored on the ``request`` object and in a
context variable so downstream code (HTTP adapters, log filters) can use
it without passing the value explicitly. Each handled request is logged
once with its method, path and status.

Behavior contract:
- A client supplied ``X-Request-Id`` is reused when it is at most
  ``MAX_REQUEST_ID_LEN`` characters long; otherwise a UUIDv4 is generated.
- The response includes the same id in the ``X-Request-ID`` header.

``ApiSizeLimitMiddleware`` rejects order API requests whose declared body
exceeds ``API_MAX_BYTES`` with HTTP 413.
"""

import contextvars
import logging
import os
import uuid

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("gateway")

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(1 * 1024 * 1024)))
MAX_REQUEST_ID_LEN = 128
API_PREFIX = "/order/"


class RequestIdMiddleware(MiddlewareMixin):
    """Django middleware that sets and returns a per-request identifier.

    Attributes:
        HEADER (str): The incoming header (in ``request.META`` casing)
            that may contain a client-provided id.
        RESPONSE_HEADER (str): The header returned on responses.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER)
        if not rid or len(rid) > MAX_REQUEST_ID_LEN:
            rid = str(uuid.uuid4())
        request.request_id = rid
        request._request_id_token = REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Set the ``X-Request-ID`` header, log the request, clear the context.

        The id attached to the request object is preferred; the ContextVar
        value is the fallback for responses produced before
        ``process_request`` ran. Once the request is logged the ContextVar
        goes back to its previous value, so later log lines on the same
        worker thread are not tagged with this request's id.
        """
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        logger.info(
            "request handled",
            extra={"path": request.path, "method": request.method, "status_code": response.status_code},
        )
        token = getattr(request, "_request_id_token", None)
        if token is not None:
            request._request_id_token = None
            try:
                REQUEST_ID_CTX.reset(token)
            except ValueError:
                # token created in another context (async handlers)
                REQUEST_ID_CTX.set("-")
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    """Reject order API requests with an oversized ``Content-Length``."""

    def process_request(self, request):
        if request.path.startswith(API_PREFIX):
            clen = request.META.get("CONTENT_LENGTH")
            if clen and clen.isdigit() and int(clen) > MAX_API_BYTES:
                return JsonResponse(
                    {"errorMessage": "Request body too large", "errorCode": "PAYLOAD_TOO_LARGE"},
                    status=413,
                )
