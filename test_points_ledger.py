"""
Points ledger service tests

Run with: pytest test_points_ledger.py -v
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.points import PendingPhoneGrant, PointAdjustment
from models.user import User
from services import points as points_service
from services.errors import (
    InvalidDelta,
    InvalidExpiry,
    InvalidPhone,
    InvalidPoints,
    LedgerError,
    NotFound,
    PersistenceFailure,
)
from services.points import (
    MAX_POINTS,
    AdjustmentRequest,
    PendingGrantRequest,
    record_adjustment,
    record_pending_grant,
    summarize,
)
from utils.dates import INVALID, parse_flexible_datetime
from utils.phone import normalize_phone

UTC = timezone.utc


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


def _log_total(user_id):
    return db.session.execute(
        select(func.coalesce(func.sum(PointAdjustment.delta), 0)).where(PointAdjustment.user_id == user_id)
    ).scalar_one()


def _log_count(user_id):
    return db.session.execute(
        select(func.count(PointAdjustment.id)).where(PointAdjustment.user_id == user_id)
    ).scalar_one()


class TestPhoneNormalization:
    """Test phone normalization"""

    @pytest.mark.parametrize('raw, expected', [
        ('0812-3456-789', '628123456789'),
        ('+62 812 3456 789', '628123456789'),
        ('628123456789', '628123456789'),
        ('(0812) 3456.789', '628123456789'),
        ('abc', ''),
        ('08\u00b2 123', '628123'),
        ('\u0660\u0668\u0661\u0662', ''),
        ('', ''),
        (None, ''),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_custom_country_code(self):
        assert normalize_phone('0412 345 678', country_code='+61') == '61412345678'


class TestFlexibleDates:
    """Test expiry timestamp parsing"""

    def test_blank_is_none(self):
        assert parse_flexible_datetime(None) is None
        assert parse_flexible_datetime('') is None
        assert parse_flexible_datetime('   ') is None

    def test_iso_with_zone(self):
        parsed = parse_flexible_datetime('2026-02-20T09:17:00Z')
        assert parsed == datetime(2026, 2, 20, 9, 17, tzinfo=UTC)
        assert parsed.tzinfo is not None

    def test_iso_with_milliseconds(self):
        assert parse_flexible_datetime('2026-02-20T09:17:00.000Z') == datetime(2026, 2, 20, 9, 17, tzinfo=UTC)

    def test_iso_with_offset(self):
        parsed = parse_flexible_datetime('2026-02-20T16:17:00+07:00')
        assert parsed == datetime(2026, 2, 20, 9, 17, tzinfo=UTC)

    def test_date_only_is_utc_midnight(self):
        assert parse_flexible_datetime('2026-02-20') == datetime(2026, 2, 20, tzinfo=UTC)

    def test_datetime_local_is_server_time(self):
        expected = datetime(2026, 2, 20, 9, 17).astimezone(UTC)
        assert parse_flexible_datetime('2026-02-20T09:17') == expected

    def test_day_month_year_with_time(self):
        expected = datetime(2026, 2, 20, 9, 17).astimezone(UTC)
        assert parse_flexible_datetime('20/02/2026 09:17') == expected

    def test_day_month_year_without_time(self):
        expected = datetime(2026, 2, 20).astimezone(UTC)
        assert parse_flexible_datetime('20/2/2026') == expected

    @pytest.mark.parametrize('raw', [
        'not-a-date',
        '31/02/2026',
        '20/13/2026',
        '2026-02-30',
        '20-02-2026',
        '\u0662\u0660/02/2026',
        '\uff12\uff10\uff12\uff16-02-20',
    ])
    def test_invalid(self, raw):
        assert parse_flexible_datetime(raw) is INVALID


class TestAdjustmentRequest:
    """Test parsing of manual adjustment bodies"""

    def test_parses_fields(self):
        req = AdjustmentRequest.from_json({
            'user_id': 'u-1',
            'delta': '25',
            'reason': '  promo  ',
            'expires_at': '2099-12-31T00:00:00Z',
        })
        assert req.user_id == 'u-1'
        assert req.delta == 25
        assert req.reason == 'promo'
        assert req.expires_at == datetime(2099, 12, 31, tzinfo=UTC)

    def test_blank_reason_and_expiry_are_none(self):
        req = AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': -5, 'reason': ' ', 'expires_at': ''})
        assert req.delta == -5
        assert req.reason is None
        assert req.expires_at is None

    def test_integral_float_accepted(self):
        assert AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': 10.0}).delta == 10

    def test_missing_user_id(self):
        with pytest.raises(LedgerError) as exc:
            AdjustmentRequest.from_json({'delta': 10})
        assert exc.value.status_code == 400

    @pytest.mark.parametrize('delta', [0, '0', None, '', 'abc', 1.5, True, float('nan')])
    def test_invalid_delta(self, delta):
        with pytest.raises(InvalidDelta):
            AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': delta})

    def test_delta_at_column_limit(self):
        assert AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': -MAX_POINTS}).delta == -MAX_POINTS

    @pytest.mark.parametrize('delta', [MAX_POINTS + 1, -(MAX_POINTS + 1), 10 ** 20, '100000000000000000000'])
    def test_delta_beyond_column_limit(self, delta):
        with pytest.raises(InvalidDelta):
            AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': delta})

    @pytest.mark.parametrize('body', [[1, 2], 5, 'delta'])
    def test_body_must_be_object(self, body):
        with pytest.raises(LedgerError) as exc:
            AdjustmentRequest.from_json(body)
        assert exc.value.status_code == 400

    def test_invalid_expiry_reports_input(self):
        with pytest.raises(InvalidExpiry) as exc:
            AdjustmentRequest.from_json({'user_id': 'u-1', 'delta': 10, 'expires_at': 'not-a-date'})
        assert exc.value.extra['got'] == 'not-a-date'


class TestPendingGrantRequest:
    """Test parsing of grant-by-phone bodies"""

    def test_parses_fields(self):
        req = PendingGrantRequest.from_json({
            'phone': '0812-3456-789',
            'points': 50,
            'name': 'Siti',
            'email': 'Siti@Example.COM',
        })
        assert req.phone == '628123456789'
        assert req.delta == 50
        assert req.email == 'siti@example.com'
        assert req.expires_at is None

    @pytest.mark.parametrize('phone', [None, '', 'no digits'])
    def test_invalid_phone(self, phone):
        with pytest.raises(InvalidPhone):
            PendingGrantRequest.from_json({'phone': phone, 'points': 10})

    @pytest.mark.parametrize('points', [0, -5, 'abc', None, 2.5])
    def test_invalid_points(self, points):
        with pytest.raises(InvalidPoints):
            PendingGrantRequest.from_json({'phone': '0812', 'points': points})

    def test_points_beyond_column_limit(self):
        with pytest.raises(InvalidPoints):
            PendingGrantRequest.from_json({'phone': '0812', 'points': MAX_POINTS + 1})

    def test_body_must_be_object(self):
        with pytest.raises(LedgerError):
            PendingGrantRequest.from_json([{'phone': '0812', 'points': 10}])


class TestRecordAdjustment:
    """Test the adjustment log and cached balance"""

    def test_unknown_user(self, ctx):
        with pytest.raises(NotFound):
            record_adjustment(AdjustmentRequest(user_id='missing', delta=10))
        assert db.session.execute(select(func.count(PointAdjustment.id))).scalar_one() == 0

    def test_balance_matches_log(self, ctx, customer_id):
        balances = [record_adjustment(AdjustmentRequest(user_id=customer_id, delta=d)) for d in (100, -30, 45, -200)]

        assert balances == [100, 70, 115, -85]
        assert _log_total(customer_id) == -85
        assert db.session.get(User, customer_id).points == -85

    def test_entry_fields(self, ctx, customer_id, admin_id):
        expires = datetime(2099, 12, 31, tzinfo=UTC)
        record_adjustment(
            AdjustmentRequest(user_id=customer_id, delta=20, reason='birthday', expires_at=expires),
            actor_id=admin_id,
        )

        entry = db.session.execute(select(PointAdjustment)).scalar_one()
        assert entry.delta == 20
        assert entry.reason == 'birthday'
        assert entry.created_by == admin_id
        assert entry.expires_at == datetime(2099, 12, 31)
        assert entry.to_dict()['expires_at'] == '2099-12-31T00:00:00+00:00'

    def test_balance_failure_keeps_entry(self, ctx, customer_id, monkeypatch):
        def broken_update(*args, **kwargs):
            raise SQLAlchemyError('balance table locked')

        monkeypatch.setattr(points_service, 'update', broken_update)

        with pytest.raises(PersistenceFailure) as exc:
            record_adjustment(AdjustmentRequest(user_id=customer_id, delta=10))

        assert exc.value.partial is True
        assert exc.value.extra['adjustment_id'] is not None
        assert _log_count(customer_id) == 1
        assert db.session.get(User, customer_id).points == 0


class TestSummarize:
    """Test the expiry summary"""

    NOW = datetime(2030, 1, 1, tzinfo=UTC)

    def _add(self, user_id, delta, expires_at=None):
        record_adjustment(AdjustmentRequest(user_id=user_id, delta=delta, expires_at=expires_at))

    def test_empty(self, ctx, customer_id):
        summary = summarize(customer_id, now=self.NOW)
        assert summary.current_balance == 0
        assert summary.expiring_by_date == []
        assert summary.next_expiring is None
        assert summary.to_dict()['next_expiring'] is None

    def test_groups_and_orders(self, ctx, customer_id):
        soon = datetime(2031, 3, 1, tzinfo=UTC)
        later = datetime(2032, 6, 15, 12, 30, tzinfo=UTC)

        self._add(customer_id, 40, later)
        self._add(customer_id, 10, soon)
        self._add(customer_id, 15, soon)

        summary = summarize(customer_id, now=self.NOW)

        assert [(b.expires_at, b.points) for b in summary.expiring_by_date] == [
            (datetime(2031, 3, 1), 25),
            (datetime(2032, 6, 15, 12, 30), 40),
        ]
        assert summary.next_expiring.points == 25
        assert summary.current_balance == 65

    def test_excludes_expired_undated_and_deductions(self, ctx, customer_id):
        self._add(customer_id, 100, datetime(2029, 12, 31, tzinfo=UTC))
        self._add(customer_id, 50)
        self._add(customer_id, -20, datetime(2031, 1, 1, tzinfo=UTC))
        self._add(customer_id, 30, datetime(2031, 1, 1, tzinfo=UTC))

        summary = summarize(customer_id, now=self.NOW)

        assert [b.points for b in summary.expiring_by_date] == [30]
        assert summary.current_balance == 160

    def test_naive_now_is_utc(self, ctx, customer_id):
        self._add(customer_id, 5, datetime(2030, 1, 1, 0, 30, tzinfo=UTC))

        assert len(summarize(customer_id, now=datetime(2030, 1, 1, 0, 0)).expiring_by_date) == 1
        assert summarize(customer_id, now=datetime(2030, 1, 1, 1, 0)).expiring_by_date == []

    def test_unknown_user(self, ctx):
        with pytest.raises(NotFound):
            summarize('missing')


class TestPendingGrants:
    """Test grants recorded against phone numbers"""

    def test_repeated_grants_are_separate(self, ctx):
        req = PendingGrantRequest.from_json({'phone': '0812-3456-789', 'points': 50})
        first = record_pending_grant(req)
        second = record_pending_grant(req)

        assert first.id != second.id
        rows = points_service.pending_grants_for_phone('+62 812-3456-789')
        assert len(rows) == 2
        assert sum(g.delta for g in rows) == 100

    def test_grant_does_not_touch_users(self, ctx, customer_id):
        record_pending_grant(PendingGrantRequest.from_json({'phone': '628123456789', 'points': 50}))

        assert db.session.get(User, customer_id).points == 0
        assert _log_count(customer_id) == 0
        assert db.session.execute(select(func.count(PendingPhoneGrant.id))).scalar_one() == 1

    def test_lookup_requires_phone(self, ctx):
        with pytest.raises(InvalidPhone):
            points_service.pending_grants_for_phone('')
