from .organization import Organization
from .member import Member
from .document import Document
from .signature_request import SignatureRequest
from .signer import Signer
from .signature import Signature
from .notification import Notification
from .activity_log import ActivityLog

__all__ = [
    'Organization',
    'Member',
    'Document',
    'SignatureRequest',
    'Signer',
    'Signature',
    'Notification',
    'ActivityLog',
]
