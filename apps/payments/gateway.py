import base64
import hashlib
import hmac
import json
import logging
from decimal import Decimal, ROUND_HALF_UP

import requests
from django.conf import settings

from core.exceptions import ExternalServiceError, SignatureError, ValidationError

logger = logging.getLogger(__name__)

PAY_ENDPOINT = '/pg/v1/pay'
SUCCESS_CODE = 'PAYMENT_SUCCESS'


def to_paise(amount):
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_paise(paise):
    return (Decimal(paise) / 100).quantize(Decimal('0.01'))


class PaymentGateway:
    """PhonePe pay-page client.

    Requests are signed with ``X-VERIFY: sha256(payload + endpoint + secret)###salt_index``.
    Callbacks carry a ``checksum`` computed over the rest of the payload.
    """

    def __init__(self):
        self.client_id = settings.PAYMENT_CLIENT_ID
        self.client_secret = settings.PAYMENT_CLIENT_SECRET
        self.base_url = settings.PAYMENT_BASE_URL.rstrip('/')
        self.merchant_id = settings.PAYMENT_MERCHANT_ID
        self.redirect_url = settings.PAYMENT_REDIRECT_URL
        self.callback_url = settings.PAYMENT_CALLBACK_URL
        self.salt_index = settings.PAYMENT_SALT_INDEX
        self.timeout = settings.PAYMENT_TIMEOUT

    def generate_checksum(self, payload=''):
        return hashlib.sha256(f"{payload}{self.client_secret}".encode('utf-8')).hexdigest()

    def _auth_headers(self):
        credentials = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode('utf-8')).decode('ascii')
        return {
            'Authorization': f'Basic {credentials}',
            'Content-Type': 'application/json',
            'X-VERIFY': f"{self.generate_checksum()}###{self.salt_index}",
        }

    def create_payment_request(self, amount, order_id, payer_contact, payer_name='', description=''):
        payload = {
            'merchantId': self.merchant_id,
            'merchantTransactionId': order_id,
            'merchantOrderId': order_id,
            'amount': to_paise(amount),
            'redirectUrl': self.redirect_url,
            'redirectMode': 'REDIRECT',
            'callbackUrl': self.callback_url,
            'merchantUserId': payer_contact,
            'mobileNumber': payer_contact,
            'paymentInstrument': {'type': 'PAY_PAGE'},
            'message': description,
            'name': payer_name,
        }
        encoded = base64.b64encode(json.dumps(payload).encode('utf-8')).decode('ascii')
        headers = {
            'Content-Type': 'application/json',
            'X-VERIFY': f"{self.generate_checksum(encoded + PAY_ENDPOINT)}###{self.salt_index}",
            'accept': 'application/json',
        }

        try:
            logger.info(f"Sending payment request for order {order_id}, amount {amount}")
            response = requests.post(
                f"{self.base_url}{PAY_ENDPOINT}",
                json={'request': encoded},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Payment request for order {order_id} failed: {str(e)}")
            raise ExternalServiceError("Failed to initiate payment", order_id=order_id)
        except ValueError:
            logger.error(f"Payment gateway returned a non-JSON body for order {order_id}")
            raise ExternalServiceError("Failed to initiate payment", order_id=order_id)

        if not data.get('success'):
            logger.error(f"Payment request for order {order_id} rejected: {data}")
            raise ExternalServiceError("Failed to initiate payment", order_id=order_id)

        try:
            payment_url = data['data']['instrumentResponse']['redirectInfo']['url']
        except (KeyError, TypeError):
            logger.error(f"Payment response for order {order_id} has no redirect url: {data}")
            raise ExternalServiceError("Failed to initiate payment", order_id=order_id)

        return {'payment_url': payment_url, 'order_id': order_id}

    def verify_payment(self, transaction_id):
        try:
            response = requests.get(
                f"{self.base_url}/pg/v1/status/{self.merchant_id}/{transaction_id}",
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Payment verification for {transaction_id} failed: {str(e)}")
            raise ExternalServiceError("Payment verification failed", transaction_id=transaction_id)

    @staticmethod
    def canonical_payload(payload):
        body = {key: value for key, value in payload.items() if key != 'checksum'}
        return json.dumps(body, sort_keys=True, separators=(',', ':'))

    def sign_callback(self, payload):
        return self.generate_checksum(self.canonical_payload(payload))

    def process_callback(self, payload):
        """Verify and translate a gateway callback into settlement terms."""
        received = payload.get('checksum') or ''
        expected = self.sign_callback(payload)
        if not hmac.compare_digest(str(received), expected):
            raise SignatureError("Invalid checksum", order_id=payload.get('merchantOrderId'))

        for field in ('merchantOrderId', 'merchantTransactionId'):
            if not payload.get(field):
                raise ValidationError(f"Callback is missing {field}", order_id=payload.get('merchantOrderId'))

        try:
            amount = from_paise(payload.get('amount') or 0)
        except (ArithmeticError, TypeError, ValueError):
            raise SignatureError("Malformed callback amount", order_id=payload.get('merchantOrderId'))

        instrument = payload.get('paymentInstrument') or {}
        return {
            'transaction_id': payload.get('merchantTransactionId'),
            'order_id': payload.get('merchantOrderId'),
            'amount': amount,
            'status': 'success' if payload.get('code') == SUCCESS_CODE else 'failed',
            'payment_method': instrument.get('type', 'unknown'),
            'payer_contact': payload.get('merchantUserId'),
            'response_code': payload.get('code'),
            'response_message': payload.get('message'),
        }
