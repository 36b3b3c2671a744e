"""Custom template filters for the restaurant site."""
from django import template
from django.utils import timezone
from django.utils.formats import date_format
from datetime import datetime

from ..supabase import parse_timestamp

register = template.Library()


@register.filter
def format_price(value):
    """
    Format a menu price with two decimals.

    Args:
        value: Price as number or numeric string

    Returns:
        String like "12.50", or "N/A" when the value is not a number
    """
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return "N/A"


@register.filter
def excerpt(content, length=150):
    """
    Shorten article content for listings.

    Args:
        content: Full text
        length: Maximum number of characters kept

    Returns:
        The text itself when short enough, else its first ``length``
        characters followed by "..."
    """
    if not content:
        return ""
    content = str(content)
    length = int(length)
    if len(content) <= length:
        return content
    return content[:length] + "..."


@register.filter
def status_color(status):
    """
    Return a CSS class for styling based on status.

    Args:
        status: Article status (draft/published/scheduled) or message
            status (pending/read)

    Returns:
        CSS class string
    """
    color_map = {
        'published': 'text-green-600 bg-green-100',
        'draft': 'text-gray-600 bg-gray-100',
        'scheduled': 'text-blue-600 bg-blue-100',
        'pending': 'text-yellow-600 bg-yellow-100',
        'read': 'text-green-600 bg-green-100',
    }

    if not status:
        return 'text-gray-500 bg-gray-50'

    return color_map.get(str(status).lower(), 'text-gray-500 bg-gray-50')


@register.filter
def time_since(moment):
    """Short relative age ("5m ago", "2h ago", "3d ago"); older than a week shows the date"""
    moment = parse_timestamp(moment)
    if not isinstance(moment, datetime):
        return "N/A"
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)

    seconds = int((timezone.now() - moment).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds >= 7 * 86400:
        return date_format(moment, 'M j, Y')
    for unit, size in (('d', 86400), ('h', 3600), ('m', 60)):
        if seconds >= size:
            return f"{seconds // size}{unit} ago"
