# Fixtures compartidas: stubs en lugar de clientes HTTP, breakers y throttles limpios
import pytest


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_HTTP_ADAPTERS = False


@pytest.fixture(autouse=True)
def fresh_circuit_breakers():
    from apps.orders.http_adapters import reset_breakers

    reset_breakers()
    yield
    reset_breakers()


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    from django.core.cache import cache

    cache.clear()
