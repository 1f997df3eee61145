from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse


def health_view(_request):
    """Report database reachability plus the configured collaborators.

    Collaborators are listed by logical name only; they are not probed so
    the health check stays independent of upstream outages.
    """
    db_ok = True
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
    except DatabaseError:
        db_ok = False

    upstreams = sorted(getattr(settings, "SERVICE_REGISTRY", {}))
    return JsonResponse(
        {
            "ok": db_ok,
            "components": {"db": {"ok": db_ok}},
            "adapters": "http" if settings.USE_HTTP_ADAPTERS else "stub",
            "upstreams": upstreams,
        },
        status=200 if db_ok else 503,
    )
