"""
Typed errors raised by the service layer.

Every error is a DRF ``APIException`` so views can let them propagate and
``api_exception_handler`` renders them in one shape:

    {"success": false, "error": "...", "code": "...", <extra fields>}

``extra`` carries the entities and amounts involved (blocking job, total
due, threshold, ...) so the client can tell the user what to do next.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'error'

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class ValidationError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class ForbiddenError(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'forbidden'


class NotFoundError(MarketplaceError):
    """Entity is missing or not owned by the caller; the two are not told apart."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class InvalidStateError(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation is not valid in the current state.'
    default_code = 'invalid_state'


class ConflictError(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflicting active record exists.'
    default_code = 'conflict'


class PaymentRequiredError(MarketplaceError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Commission dues must be cleared before taking new work.'
    default_code = 'commission_due'


class InsufficientFundsError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient wallet balance.'
    default_code = 'insufficient_funds'


class ExternalServiceError(MarketplaceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment service is unavailable. Please try again later.'
    default_code = 'external_service_error'


class SignatureError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid signature.'
    default_code = 'invalid_signature'


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, MarketplaceError):
        data = {
            'success': False,
            'error': str(exc.detail),
            'code': exc.default_code,
        }
        data.update(exc.extra)
        response.data = data
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'success': False, 'error': str(response.data['detail'])}
    else:
        response.data = {'success': False, 'errors': response.data}
    return response
