"""
HTTP API tests against the real FastAPI app with in-memory adapters.

The DI container's repository and messaging providers are overridden, so the
controllers, use cases and exception handlers run unchanged without Postgres
or the LINE API.
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import ExitStack, asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.testclient import TestClient
import orjson
import pytest

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.entity.holiday_entity import Holiday
from src.service.table_booking.domain.entity.restaurant_entity import Restaurant
from src.service.table_booking.domain.entity.staff_entity import Staff, StaffPermissions
from src.service.table_booking.domain.enum.holiday_type import BusinessImpact, HolidayType
from src.service.table_booking.driven_adapter.messaging.line_signature import (
    compute_line_signature,
)
from test.service.table_booking.unit.in_memory_repos import (
    InMemoryBookingStore,
    InMemoryCustomerRepo,
    InMemoryDiningTableRepo,
    InMemoryHolidayRepo,
    InMemoryRestaurantRepo,
    InMemoryStaffRepo,
    InMemoryTableHoldRepo,
    RecordingMessenger,
)


BOOKING_DAY = date(2030, 3, 9)


@asynccontextmanager
async def _test_lifespan(app: FastAPI) -> AsyncIterator[None]:
    container.wire(modules=WIRE_MODULES)
    yield
    container.unwire()


@pytest.fixture
def messenger() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture
def client(messenger: RecordingMessenger) -> Iterator[TestClient]:
    holds = InMemoryTableHoldRepo()
    store = InMemoryBookingStore(holds=holds)
    today = datetime.now(container.tz()).date()
    overrides = {
        container.booking_command_repo: store,
        container.booking_query_repo: store,
        container.table_hold_repo: holds,
        container.dining_table_repo: InMemoryDiningTableRepo(
            [
                DiningTable(restaurant_id='rest-1', table_code='t1', capacity=4),
                DiningTable(restaurant_id='rest-1', table_code='t2', capacity=2),
            ]
        ),
        container.staff_query_repo: InMemoryStaffRepo(
            [
                Staff(
                    id='staff-1',
                    restaurant_id='rest-1',
                    display_name='Somchai',
                    permissions=StaffPermissions(can_update_bookings=True),
                )
            ]
        ),
        container.customer_repo: InMemoryCustomerRepo(),
        container.restaurant_query_repo: InMemoryRestaurantRepo(
            [Restaurant(id='rest-1', name='Baan Suan')]
        ),
        container.holiday_query_repo: InMemoryHolidayRepo(
            [
                Holiday(
                    holiday_date=today + timedelta(days=3),
                    name='Makha Bucha',
                    type=HolidayType.RELIGIOUS,
                    impact=1.1,
                    business_impact=BusinessImpact.LOW,
                ),
                Holiday(
                    holiday_date=today + timedelta(days=40),
                    name='Songkran',
                    type=HolidayType.MAJOR_FESTIVAL,
                    impact=1.8,
                    business_impact=BusinessImpact.VERY_HIGH,
                ),
            ]
        ),
        container.messenger: messenger,
    }

    container.reset_singletons()
    with ExitStack() as stack:
        for provider, fake in overrides.items():
            stack.enter_context(provider.override(fake))
        app = create_app(lifespan=_test_lifespan, title_suffix=' (Test)')
        with TestClient(app) as test_client:
            yield test_client
    container.reset_singletons()


def _create(client: TestClient, **changes: Any) -> Dict[str, Any]:
    payload = {
        'restaurant_id': 'rest-1',
        'customer_id': 'cust-1',
        'table_id': 't1',
        'date': BOOKING_DAY.isoformat(),
        'start_time': '19:00',
        'guest_count': 2,
    } | changes
    response = client.post('/api/booking', json=payload)
    return {'status_code': response.status_code, 'body': response.json()}


@pytest.mark.unit
class TestBookingApi:
    def test_create_booking(self, client: TestClient) -> None:
        """
        Given: Free table t1
        When: POST /api/booking for 19:00
        Then: 201, pending, 19:00-21:00, BK reference, created history entry
        """
        result = _create(client)

        assert result['status_code'] == 201
        body = result['body']
        assert body['status'] == 'pending'
        assert (body['start_time'], body['end_time']) == ('19:00', '21:00')
        assert body['booking_ref'].startswith('BK')
        assert body['version'] == 0
        assert [h['action'] for h in body['history']] == ['created']

    def test_overlapping_booking_is_conflict(self, client: TestClient) -> None:
        assert _create(client)['status_code'] == 201

        result = _create(client, customer_id='cust-2', start_time='20:00')

        assert result['status_code'] == 409
        assert result['body'] == {
            'detail': 'This table is no longer available for the selected time',
            'code': 'table_no_longer_available',
            'slot': {'table_id': 't1', 'date': BOOKING_DAY.isoformat(), 'time': '20:00'},
            'next_steps': ['choose_another_time', 'choose_another_table'],
        }

    def test_back_to_back_booking_is_allowed(self, client: TestClient) -> None:
        assert _create(client)['status_code'] == 201
        assert _create(client, customer_id='cust-2', start_time='21:00')['status_code'] == 201

    def test_guests_over_capacity_is_bad_request(self, client: TestClient) -> None:
        result = _create(client, table_id='t2', guest_count=3)

        assert result['status_code'] == 400
        assert 'exceeds table capacity' in result['body']['detail']

    def test_zero_guests_fails_validation(self, client: TestClient) -> None:
        assert _create(client, guest_count=0)['status_code'] == 400

    def test_unknown_table_is_not_found(self, client: TestClient) -> None:
        assert _create(client, table_id='t9')['status_code'] == 404

    def test_get_booking_by_id_and_ref(self, client: TestClient) -> None:
        created = _create(client)['body']

        by_id = client.get(f'/api/booking/{created["id"]}')
        by_ref = client.get(f'/api/booking/ref/{created["booking_ref"]}')

        assert by_id.status_code == 200
        assert by_ref.status_code == 200
        assert by_id.json()['id'] == by_ref.json()['id'] == created['id']

    def test_unknown_booking_is_not_found(self, client: TestClient) -> None:
        response = client.get('/api/booking/01936d8f-5e73-7c4e-a9c5-123456789abc')

        assert response.status_code == 404
        assert response.json() == {'detail': 'Booking not found', 'code': 'not_found'}

    def test_availability(self, client: TestClient) -> None:
        _create(client)
        params = {'restaurant_id': 'rest-1', 'date': BOOKING_DAY.isoformat()}

        busy = client.get(
            '/api/booking/availability', params=params | {'table_id': 't1', 'start_time': '20:00'}
        )
        free_tables = client.get(
            '/api/booking/availability/tables',
            params=params | {'start_time': '20:00', 'guest_count': 2},
        )

        assert busy.status_code == 200
        assert busy.json()['available'] is False
        assert [t['table_code'] for t in free_tables.json()] == ['t2']

    def test_staff_confirms_then_stale_version_conflicts(self, client: TestClient) -> None:
        created = _create(client)['body']
        url = f'/api/booking/{created["id"]}/status'

        confirmed = client.patch(
            url,
            json={
                'status': 'confirmed',
                'actor_type': 'staff',
                'actor_id': 'staff-1',
                'expected_version': 0,
            },
        )
        stale = client.patch(
            url,
            json={
                'status': 'completed',
                'actor_type': 'system',
                'expected_version': 0,
            },
        )

        assert confirmed.status_code == 200
        assert confirmed.json()['status'] == 'confirmed'
        assert confirmed.json()['version'] == 1
        assert stale.status_code == 409
        assert stale.json()['code'] == 'version_conflict'
        assert stale.json()['next_steps'] == ['reload_booking']

    def test_confirming_twice_reports_current_status(self, client: TestClient) -> None:
        created = _create(client)['body']
        url = f'/api/booking/{created["id"]}/status'
        payload = {'status': 'confirmed', 'actor_type': 'staff', 'actor_id': 'staff-1'}

        first = client.patch(url, json=payload)
        second = client.patch(url, json=payload)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json() == {
            'detail': f'Booking {created["booking_ref"]} is already confirmed',
            'code': 'invalid_status_transition',
        }

    def test_customer_cannot_cancel_others_booking(self, client: TestClient) -> None:
        created = _create(client)['body']

        response = client.patch(
            f'/api/booking/{created["id"]}/status',
            json={'status': 'cancelled', 'actor_type': 'customer', 'actor_id': 'cust-2'},
        )

        assert response.status_code == 403



def _hold(client: TestClient, **changes: Any) -> Dict[str, Any]:
    payload = {
        'restaurant_id': 'rest-1',
        'customer_id': 'cust-1',
        'table_id': 't1',
        'date': BOOKING_DAY.isoformat(),
        'start_time': '19:00',
        'guest_count': 2,
    } | changes
    response = client.post('/api/booking/hold', json=payload)
    return {'status_code': response.status_code, 'body': response.json()}


@pytest.mark.unit
class TestTableHoldApi:
    def test_create_hold(self, client: TestClient) -> None:
        """
        Given: Free table t1
        When: POST /api/booking/hold for 19:00
        Then: 201, active, 19:00-21:00, expiring in the default 5 minutes
        """
        result = _hold(client)

        assert result['status_code'] == 201
        body = result['body']
        assert body['status'] == 'active'
        assert (body['start_time'], body['end_time']) == ('19:00', '21:00')
        assert 0 < body['seconds_remaining'] <= 300

        fetched = client.get(f'/api/booking/hold/{body["id"]}')
        assert fetched.status_code == 200
        assert fetched.json()['id'] == body['id']

    def test_overlapping_hold_is_conflict(self, client: TestClient) -> None:
        assert _hold(client)['status_code'] == 201

        result = _hold(client, customer_id='cust-2', start_time='20:00')

        assert result['status_code'] == 409
        assert result['body']['code'] == 'table_no_longer_available'

    def test_held_slot_cannot_be_booked_by_someone_else(self, client: TestClient) -> None:
        assert _hold(client)['status_code'] == 201

        result = _create(client, customer_id='cust-2', start_time='19:30')

        assert result['status_code'] == 409
        assert result['body']['code'] == 'table_no_longer_available'

    def test_booking_with_hold_id_consumes_the_hold(self, client: TestClient) -> None:
        hold = _hold(client)['body']

        result = _create(client, hold_id=hold['id'])

        assert result['status_code'] == 201
        after = client.get(f'/api/booking/hold/{hold["id"]}').json()
        assert after['status'] == 'confirmed'
        assert after['booking_id'] == result['body']['id']

    def test_confirm_hold_creates_booking(self, client: TestClient) -> None:
        hold = _hold(client)['body']

        confirmed = client.post(
            f'/api/booking/hold/{hold["id"]}/confirm', json={'customer_id': 'cust-1'}
        )
        again = client.post(
            f'/api/booking/hold/{hold["id"]}/confirm', json={'customer_id': 'cust-1'}
        )

        assert confirmed.status_code == 201
        assert confirmed.json()['status'] == 'pending'
        assert confirmed.json()['start_time'] == '19:00'
        assert again.status_code == 400
        assert again.json() == {
            'detail': 'This hold was already confirmed',
            'code': 'invalid_status_transition',
        }

    def test_someone_else_cannot_confirm_the_hold(self, client: TestClient) -> None:
        hold = _hold(client)['body']

        response = client.post(
            f'/api/booking/hold/{hold["id"]}/confirm', json={'customer_id': 'cust-2'}
        )

        assert response.status_code == 403

    def test_release_is_idempotent_and_frees_the_slot(self, client: TestClient) -> None:
        hold = _hold(client)['body']
        url = f'/api/booking/hold/{hold["id"]}/release'

        first = client.post(url, json={'customer_id': 'cust-1'})
        second = client.post(url, json={'customer_id': 'cust-1'})

        assert first.status_code == 200
        assert first.json()['status'] == 'released'
        assert second.status_code == 200
        assert second.json()['status'] == 'released'
        assert _create(client, customer_id='cust-2')['status_code'] == 201

    def test_confirmed_hold_cannot_be_released(self, client: TestClient) -> None:
        hold = _hold(client)['body']
        client.post(f'/api/booking/hold/{hold["id"]}/confirm', json={'customer_id': 'cust-1'})

        response = client.post(
            f'/api/booking/hold/{hold["id"]}/release', json={'customer_id': 'cust-1'}
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'invalid_status_transition'

    def test_extend_hold(self, client: TestClient) -> None:
        hold = _hold(client, hold_minutes=2)['body']

        response = client.post(
            f'/api/booking/hold/{hold["id"]}/extend',
            json={'customer_id': 'cust-1', 'minutes': 10},
        )

        assert response.status_code == 200
        assert response.json()['seconds_remaining'] > 120

    def test_hold_longer_than_allowed_is_bad_request(self, client: TestClient) -> None:
        result = _hold(client, hold_minutes=60)

        assert result['status_code'] == 400
        assert 'at most 15 minutes' in result['body']['detail']

    def test_unknown_hold_is_not_found(self, client: TestClient) -> None:
        response = client.get('/api/booking/hold/01936d8f-5e73-7c4e-a9c5-123456789abc')

        assert response.status_code == 404
        assert response.json() == {'detail': 'Hold not found', 'code': 'not_found'}

    def test_conflict_check_scores_bookings_and_holds(self, client: TestClient) -> None:
        """
        Given: t1 booked 19:00-21:00 and held by cust-2 21:00-23:00
        When: Checking t1 20:00-22:00
        Then: Two overlaps, no exact match, score drops by the overlap penalty once
        """
        _create(client)
        _hold(client, customer_id='cust-2', start_time='21:00')

        response = client.post(
            '/api/booking/conflict-check',
            json={
                'restaurant_id': 'rest-1',
                'table_id': 't1',
                'date': BOOKING_DAY.isoformat(),
                'start_time': '20:00',
                'end_time': '22:00',
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body['is_available'] is False
        assert body['total_conflicts'] == 2
        assert body['availability_score'] == 70
        assert body['exact'] == []
        assert sorted(slot['kind'] for slot in body['overlapping']) == ['booking', 'hold']

    def test_cleanup_is_rejected_without_system_token(self, client: TestClient) -> None:
        response = client.post(
            '/api/booking/hold/cleanup-expired', headers={'Authorization': 'Bearer anything'}
        )

        assert response.status_code == 401
        assert response.json()['code'] == 'unauthorized'



@pytest.mark.unit
class TestPricingApi:
    def test_calculate_price(self, client: TestClient) -> None:
        response = client.post(
            '/api/pricing/calculate',
            json={
                'restaurant_id': 'rest-1',
                'table_id': 't1',
                'date': BOOKING_DAY.isoformat(),
                'time': '19:00',
                'guest_count': 2,
                'table_capacity': 4,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert 70 <= body['final_price'] <= 200
        assert body['currency'] == 'THB'

    def test_invalid_time_answers_fallback_quote(self, client: TestClient) -> None:
        """
        Given: A time that cannot be parsed
        When: POST /api/pricing/calculate
        Then: Still 200, base price with success false
        """
        response = client.post(
            '/api/pricing/calculate',
            json={
                'restaurant_id': 'rest-1',
                'table_id': 't1',
                'date': BOOKING_DAY.isoformat(),
                'time': 'dinner',
                'guest_count': 2,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is False
        assert body['final_price'] == 100

    def test_quick_price(self, client: TestClient) -> None:
        response = client.get(
            '/api/pricing/quick',
            params={
                'restaurant_id': 'rest-1',
                'date': BOOKING_DAY.isoformat(),
                'time': '12:00',
                'guest_count': 3,
            },
        )

        assert response.status_code == 200
        assert set(response.json()) == {
            'final_price',
            'currency',
            'demand_level',
            'confidence',
            'success',
        }


@pytest.mark.unit
class TestHolidayApi:
    def test_upcoming_holidays_within_window(self, client: TestClient) -> None:
        response = client.get('/api/holiday/upcoming', params={'days_ahead': 30})

        assert response.status_code == 200
        [holiday] = response.json()
        assert holiday['name'] == 'Makha Bucha'
        assert holiday['days_until'] == 3
        assert holiday['business_impact'] == 'low'


@pytest.mark.unit
class TestLineWebhookApi:
    @staticmethod
    def _signed(body: bytes) -> Dict[str, str]:
        secret = container.config_service().LINE_CHANNEL_SECRET.get_secret_value()
        return {
            'X-Line-Signature': compute_line_signature(body=body, channel_secret=secret),
            'Content-Type': 'application/json',
        }

    def test_bad_signature_is_rejected(self, client: TestClient, messenger: RecordingMessenger) -> None:
        body = orjson.dumps({'destination': 'U0', 'events': []})

        response = client.post(
            '/api/line/webhook',
            content=body,
            headers={'X-Line-Signature': 'forged', 'Content-Type': 'application/json'},
        )

        assert response.status_code == 401
        assert messenger.replies == []

    def test_missing_signature_is_rejected(self, client: TestClient) -> None:
        response = client.post('/api/line/webhook', content=b'{"events": []}')

        assert response.status_code == 401

    def test_signed_text_event_is_answered(
        self, client: TestClient, messenger: RecordingMessenger
    ) -> None:
        body = orjson.dumps(
            {
                'destination': 'U0',
                'events': [
                    {
                        'type': 'message',
                        'webhookEventId': 'ev-1',
                        'replyToken': 'rt-1',
                        'source': {'type': 'user', 'userId': 'U-customer'},
                        'message': {'type': 'text', 'text': 'hello'},
                    }
                ],
            }
        )

        response = client.post('/api/line/webhook', content=body, headers=self._signed(body))

        assert response.status_code == 200
        assert response.json() == {'status': 'ok'}
        [(token, messages)] = messenger.replies
        assert token == 'rt-1'
        assert messages[0]['altText'] == 'Main menu'

    def test_signed_invalid_json_is_bad_request(self, client: TestClient) -> None:
        body = b'not json'

        response = client.post('/api/line/webhook', content=body, headers=self._signed(body))

        assert response.status_code == 400


@pytest.mark.unit
class TestCommonEndpoints:
    def test_health(self, client: TestClient) -> None:
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'
