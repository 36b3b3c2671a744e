"""
Legacy contact-form metadata bag.

Early deployments stored contact form submissions as ``member_subscriptions``
rows with ``is_subscribed = false`` and a ``metadata`` JSON bag. Contact
messages now live in the ``contact_messages`` table; this module only decodes
the old rows so they can be migrated.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Union

from .parsing import parse_json_object

CONTACT_FORM_TYPE = 'contact_form'
DEFAULT_SUBJECT = 'Contact Form Submission'
DEFAULT_STATUS = 'pending'

_KNOWN_KEYS = {'type', 'name', 'subject', 'message', 'status'}


@dataclass(frozen=True)
class EmptyMetadata:
    """No usable metadata on the row"""


@dataclass(frozen=True)
class ContactFormPayload:
    name: str
    subject: str
    message: str
    status: str = DEFAULT_STATUS
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_metadata(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            'type': CONTACT_FORM_TYPE,
            'name': self.name,
            'subject': self.subject,
            'message': self.message,
            'status': self.status,
        })
        return data

    def with_status(self, status: str) -> 'ContactFormPayload':
        """Copy with only the status replaced; unknown keys are carried over"""
        return replace(self, status=status, extra=dict(self.extra))


Metadata = Union[ContactFormPayload, EmptyMetadata]


def decode_metadata(raw: Any) -> Metadata:
    """
    Decode a metadata bag that may be a dict, JSON text, None or garbage.

    Never raises: anything that is not a contact form payload decodes to
    EmptyMetadata.
    """
    data = parse_json_object(raw)
    if data.get('type') != CONTACT_FORM_TYPE:
        return EmptyMetadata()

    return ContactFormPayload(
        name=str(data.get('name') or 'Unknown'),
        subject=str(data.get('subject') or DEFAULT_SUBJECT),
        message=str(data.get('message') or ''),
        status=str(data.get('status') or DEFAULT_STATUS),
        extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )


def legacy_row_to_contact_message(row: Dict[str, Any]):
    """
    Convert a legacy member_subscriptions row into a contact_messages row.

    Returns None when the row does not carry a contact form payload.
    """
    payload = decode_metadata(row.get('metadata'))
    if isinstance(payload, EmptyMetadata):
        return None
    if isinstance(payload, ContactFormPayload):
        return {
            'name': payload.name,
            'email': row.get('email', ''),
            'subject': payload.subject,
            'message': payload.message,
            'status': payload.status,
            'created_at': row.get('subscribed_at'),
        }
    raise TypeError(f"Unhandled metadata variant: {type(payload).__name__}")
