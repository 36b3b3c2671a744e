"""Tolerant parsers for semi-structured fields and form input."""
import json
import logging
import re

logger = logging.getLogger(__name__)

_FLOAT_PREFIX = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')
_INT_PREFIX = re.compile(r'^\s*[+-]?\d+')


def parse_json_object(raw):
    """
    Decode a JSON object column (business_hours, social_links, metadata).

    The driver may hand back a dict already or the serialized text. Anything
    that is not a JSON object, including malformed text, becomes ``{}``.
    """
    if isinstance(raw, dict):
        return raw
    if not raw or not isinstance(raw, (str, bytes)):
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        logger.debug(f"Ignoring malformed JSON field: {raw!r:.80}")
        return {}
    return value if isinstance(value, dict) else {}


def parse_business_hours_input(text):
    """
    Parse the business hours textarea of the contact info form.

    A JSON object is stored as-is; any other non-empty input is kept as
    ``{"text": <input>}`` so nothing typed by the admin is lost.
    """
    if not text or not text.strip():
        return {}
    try:
        value = json.loads(text)
    except ValueError:
        return {'text': text}
    return value if isinstance(value, dict) else {'text': text}


def lenient_float(text, default=0.0):
    """
    Read the leading number of a text input ("12.50 THB" -> 12.5).

    Text without a numeric prefix yields ``default`` instead of an error.
    """
    if isinstance(text, (int, float)):
        return float(text)
    match = _FLOAT_PREFIX.match(text or '')
    if not match:
        return default
    return float(match.group(0))


def lenient_int(text, default=0):
    """Integer counterpart of lenient_float ("3rd" -> 3, "" -> default)"""
    if isinstance(text, int):
        return text
    match = _INT_PREFIX.match(text or '')
    if not match:
        return default
    return int(match.group(0))
