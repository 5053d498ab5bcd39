"""
Core Backend Tests

Error envelope, transient retry, marketplace configuration and the soft
delete manager shared by the apps.
"""
from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.db import OperationalError
from rest_framework import exceptions as drf_exceptions

from core_backend.config import marketplace_settings
from core_backend.exceptions import (
    ConflictError,
    NotAuthorized,
    NotFoundError,
    UpstreamUnavailable,
    ValidationFailed,
    marketplace_exception_handler,
)
from core_backend.utils.retry import retry_on_transient_errors
from meals.models import Meal


class TestExceptionHandler:
    """Test that domain errors render as {"error": {"kind", "message"}}"""

    @pytest.mark.parametrize('exc, status_code, kind', [
        (NotFoundError('Order not found'), 404, 'not_found'),
        (ValidationFailed('Bad input'), 400, 'validation_failed'),
        (NotAuthorized('Not yours'), 403, 'forbidden'),
        (ConflictError('Already assigned'), 400, 'conflict'),
        (UpstreamUnavailable('SMS down'), 503, 'upstream_unavailable'),
    ])
    def test_domain_errors(self, exc, status_code, kind):
        response = marketplace_exception_handler(exc, {})

        assert response.status_code == status_code
        assert response.data == {'error': {'kind': kind, 'message': exc.message}}

    def test_default_message(self):
        response = marketplace_exception_handler(NotAuthorized(), {})
        assert response.data['error']['message'] == 'You are not allowed to perform this action.'

    def test_drf_errors_keep_drf_shape(self):
        response = marketplace_exception_handler(drf_exceptions.NotFound(), {})

        assert response.status_code == 404
        assert 'detail' in response.data

    def test_unexpected_errors_are_not_handled(self):
        assert marketplace_exception_handler(RuntimeError('boom'), {}) is None


def unit_of_work(side_effect):
    work = mock.Mock(side_effect=side_effect)
    work.__qualname__ = 'unit_of_work'
    return work


class TestRetryOnTransientErrors:
    """Test bounded retry of transient database failures"""

    @pytest.fixture(autouse=True)
    def no_sleep(self):
        with mock.patch('core_backend.utils.retry.time.sleep') as sleep:
            yield sleep

    def test_succeeds_after_transient_failure(self):
        work = unit_of_work([OperationalError('deadlock detected'), 'done'])

        assert retry_on_transient_errors(work, attempts=3)() == 'done'
        assert work.call_count == 2

    def test_gives_up_after_max_attempts(self):
        work = unit_of_work(OperationalError('could not serialize access'))

        with pytest.raises(OperationalError):
            retry_on_transient_errors(attempts=3)(work)()
        assert work.call_count == 3

    def test_other_errors_are_not_retried(self):
        work = unit_of_work(ValueError('bad'))

        with pytest.raises(ValueError):
            retry_on_transient_errors(work, attempts=3)()
        assert work.call_count == 1

    def test_attempts_default_to_configuration(self, settings):
        settings.MARKETPLACE = {'TRANSIENT_RETRY_ATTEMPTS': 2}
        work = unit_of_work(OperationalError('lost connection'))

        with pytest.raises(OperationalError):
            retry_on_transient_errors(work)()
        assert work.call_count == 2


class TestMarketplaceSettings:
    def test_defaults(self, settings):
        settings.MARKETPLACE = {}

        assert marketplace_settings.vat_rate == Decimal('0.13')
        assert marketplace_settings.flat_delivery_fee == Decimal('50.00')
        assert marketplace_settings.partner_earning_share == Decimal('0.70')
        assert marketplace_settings.order_number_prefix == 'HT'

    def test_overrides_are_read_on_access(self, settings):
        settings.MARKETPLACE = {'VAT_RATE': '0.10'}
        assert marketplace_settings.vat_rate == Decimal('0.10')

    @pytest.mark.parametrize('overrides', [
        {'VAT_RATE': 'thirteen'},
        {'FLAT_DELIVERY_FEE': '-1'},
        {'PARTNER_EARNING_SHARE': '1.5'},
        {'ORDER_NUMBER_MAX_ATTEMPTS': 0},
    ])
    def test_validate_rejects_bad_values(self, settings, overrides):
        settings.MARKETPLACE = overrides

        with pytest.raises(ImproperlyConfigured):
            marketplace_settings.validate()


@pytest.mark.django_db
class TestSoftDelete:
    """Test that archived meals leave the default manager but not the database"""

    def test_delete_archives(self, meal, kitchen):
        meal.archive(archived_by=kitchen)

        assert not Meal.objects.filter(pk=meal.pk).exists()
        archived = Meal.all_objects.get(pk=meal.pk)
        assert archived.is_archived
        assert archived.archived_by == kitchen

    def test_unarchive(self, meal):
        meal.delete()
        meal.unarchive()

        assert Meal.objects.filter(pk=meal.pk).exists()

    def test_queryset_archive(self, meal, side_meal):
        assert Meal.objects.all().archive() == 2
        assert Meal.objects.count() == 0
        assert Meal.all_objects.archived().count() == 2


@pytest.mark.django_db
def test_health_check(api_client):
    response = api_client.get('/api/health/')

    assert response.status_code == 200
    assert response.json()['status'] == 'ok'


@pytest.mark.django_db
class TestFieldsets:
    """Test that view_mode picks the serializer fieldset"""

    def test_list_mode_restricts_fields(self, order):
        from orders.serializers import OrderSerializer

        data = OrderSerializer(order, context={'view_mode': 'list'}).data

        assert set(data) == {
            'id', 'order_number', 'kitchen', 'status', 'scheduled_date',
            'slot_start_time', 'slot_end_time', 'total', 'payment_method', 'created_at',
        }

    def test_detail_mode_keeps_everything(self, order):
        from orders.serializers import OrderSerializer

        data = OrderSerializer(order, context={'view_mode': 'detail'}).data

        assert {'items', 'status_history', 'delivery_address'} <= set(data)
