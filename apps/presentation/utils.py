from typing import Optional
from rest_framework.response import Response
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_ipv46_address
from rest_framework import status
from apps.domain.exceptions import SignatureWorkflowError
import logging

logger = logging.getLogger('apps')


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict = None,
                   code: Optional[str] = None) -> Response:
    response_data = {
        'error': message,
        'status': status_code
    }

    if code:
        response_data['code'] = code

    if details:
        response_data['details'] = details

    logger.error(f'Error response: {message} - {details}')

    return Response(response_data, status=status_code)


def workflow_error_response(error: SignatureWorkflowError) -> Response:
    return error_response(error.message, error.status_code, error.details, code=error.code)


def _valid_ip(candidate) -> Optional[str]:
    if not candidate:
        return None
    try:
        validate_ipv46_address(candidate)
    except DjangoValidationError:
        return None
    return candidate


def get_client_ip(request) -> Optional[str]:
    """Best-effort client address; invalid header values are discarded."""
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        candidate = _valid_ip(forwarded_for.split(',')[0].strip())
        if candidate:
            return candidate
        logger.warning(f'Ignoring invalid X-Forwarded-For value: {forwarded_for[:100]}')
    return _valid_ip(request.META.get('REMOTE_ADDR'))
