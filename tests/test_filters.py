from datetime import datetime, timedelta

from django.utils import timezone

from restaurant_cms.templatetags.restaurant_filters import excerpt, format_price, status_color, time_since


def test_format_price():
    assert format_price(14) == '14.00'
    assert format_price('6.5') == '6.50'
    assert format_price(None) == 'N/A'
    assert format_price('market price') == 'N/A'


def test_excerpt():
    assert excerpt('Short', 150) == 'Short'
    assert excerpt('x' * 200, 150) == 'x' * 150 + '...'
    assert excerpt(None) == ''


def test_status_color():
    assert status_color('pending') == 'text-yellow-600 bg-yellow-100'
    assert status_color('READ') == 'text-green-600 bg-green-100'
    assert status_color('archived') == 'text-gray-500 bg-gray-50'
    assert status_color(None) == 'text-gray-500 bg-gray-50'


def test_time_since():
    now = timezone.now()

    assert time_since(now - timedelta(hours=2)) == '2h ago'
    assert time_since((now - timedelta(days=3)).isoformat()) == '3d ago'
    assert time_since(now + timedelta(minutes=5)) == 'just now'
    assert time_since('not a date') == 'N/A'
    assert time_since(None) == 'N/A'


def test_time_since_falls_back_to_date_after_a_week():
    moment = timezone.make_aware(datetime(2024, 3, 4, 12, 0))

    assert time_since(moment) == 'Mar 4, 2024'
    assert time_since(timezone.now() - timedelta(seconds=20)) == 'just now'
    assert time_since(timezone.now() - timedelta(minutes=5)) == '5m ago'
