"""
Validation of submitted signature evidence.

Pure functions: no database access and no network I/O, so a malformed
submission is rejected before the request is touched or the document is
fetched for hashing.
"""

import re
from dataclasses import dataclass
from typing import Optional

from apps.domain.exceptions import ValidationError

SIGNATURE_TYPES = ('drawn', 'typed', 'uploaded')
IMAGE_SIGNATURE_TYPES = ('drawn', 'uploaded')
ALLOWED_IMAGE_ENCODINGS = ('png', 'jpeg', 'jpg', 'gif', 'svg+xml')

DEFAULT_MAX_IMAGE_BYTES = 500 * 1024
TYPED_MIN_LENGTH = 2
TYPED_MAX_LENGTH = 200
LEGAL_NAME_MAX_LENGTH = 200

IMAGE_DATA_URI_PATTERN = re.compile(
    r'^data:image/(' + '|'.join(re.escape(enc) for enc in ALLOWED_IMAGE_ENCODINGS) + r');base64,[A-Za-z0-9+/]+=*$'
)


@dataclass(frozen=True)
class Evidence:
    signature_type: str
    signature_data: str
    legal_name: str
    consent_given: bool


def validate_signature_data(signature_type: str, signature_data: Optional[str],
                            max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> str:
    if signature_type not in SIGNATURE_TYPES:
        raise ValidationError(
            f'Invalid signature type: {signature_type}',
            details={'allowed': list(SIGNATURE_TYPES)},
        )

    if not signature_data:
        raise ValidationError('Signature data is required')

    if signature_type in IMAGE_SIGNATURE_TYPES:
        # Tamanho primeiro: evita rodar a regex sobre payloads enormes
        if len(signature_data) > max_image_bytes:
            raise ValidationError(
                f'Signature image too large (max {max_image_bytes // 1024}KB)',
                details={'size': len(signature_data), 'max_size': max_image_bytes},
            )
        if not signature_data.startswith('data:image/'):
            raise ValidationError('Invalid signature image format')
        if not IMAGE_DATA_URI_PATTERN.match(signature_data):
            raise ValidationError('Invalid signature image encoding')
        return signature_data

    typed = signature_data.strip()
    if len(typed) > TYPED_MAX_LENGTH:
        raise ValidationError(f'Typed signature too long (max {TYPED_MAX_LENGTH} characters)')
    if len(typed) < TYPED_MIN_LENGTH:
        raise ValidationError('Typed signature too short')
    return typed


def validate_legal_name(legal_name: Optional[str]) -> str:
    cleaned = (legal_name or '').strip()
    if not cleaned:
        raise ValidationError('Legal name is required')
    if len(cleaned) > LEGAL_NAME_MAX_LENGTH:
        raise ValidationError(f'Legal name too long (max {LEGAL_NAME_MAX_LENGTH} characters)')
    return cleaned


def validate_evidence(signature_type: str, signature_data: Optional[str], legal_name: Optional[str],
                      consent_given: bool, max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> Evidence:
    """Validate a sign submission and return the cleaned evidence.

    Raises ValidationError on the first problem found. Consent is checked
    strictly: only the boolean True counts as agreement.
    """
    if consent_given is not True:
        raise ValidationError('You must agree to the terms')

    cleaned_name = validate_legal_name(legal_name)
    cleaned_data = validate_signature_data(signature_type, signature_data, max_image_bytes)

    return Evidence(
        signature_type=signature_type,
        signature_data=cleaned_data,
        legal_name=cleaned_name,
        consent_given=True,
    )
