"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(scope='session', autouse=True)
def celery_eager():
    """
    Run Celery tasks inline so queued notifications execute in-process.

    Broker errors never surface in tests; task failures are logged, not raised,
    matching how the worker treats notification failures.
    """
    from core_backend.celery import app

    app.conf.task_always_eager = True
    app.conf.task_eager_propagates = False
    yield


@pytest.fixture(autouse=True)
def event_sink(settings):
    """
    Swap the real-time sink for an in-memory one and hand it to the test.

    Events are published from transaction.on_commit, so assertions on them need
    `django_capture_on_commit_callbacks(execute=True)` around the operation.

    Usage:
        def test_broadcast(event_sink, django_capture_on_commit_callbacks):
            with django_capture_on_commit_callbacks(execute=True):
                OrderService.transition_status(order, 'confirmed')
            assert event_sink.events_for(event_type='status_update')
    """
    from orders.events import get_event_sink

    settings.MARKETPLACE = {
        **settings.MARKETPLACE,
        'EVENT_SINK': 'orders.events.sinks.InMemoryEventSink',
    }
    sink = get_event_sink()
    sink.clear()
    yield sink
    sink.clear()


@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/meals/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an API client authenticated with a JWT access token for `user`.

    Usage:
        def test_protected_endpoint(client_for, customer):
            response = client_for(customer).get('/api/orders/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    def build(user):
        client = APIClient()
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return client

    return build


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
