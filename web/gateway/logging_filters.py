"""Logging filter that tags records with the current request id.

The id comes from the ContextVar populated by ``RequestIdMiddleware``, so
every log line emitted while serving a request (views, the order service,
the HTTP adapters) can be correlated in the JSON output without passing the
id around explicitly.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    An id passed explicitly through ``extra`` is kept. Outside of a request
    the ContextVar default ("-") is used so formatters can always reference
    ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
