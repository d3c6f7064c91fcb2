"""
Thin client for the Paystack REST API.

Amounts go to Paystack in kobo and come back converted to naira.
"""
import logging
from decimal import Decimal

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PaystackError(Exception):
    def __init__(self, message, status_code=502):
        super().__init__(message)
        self.status_code = status_code


class PaystackClient:
    def __init__(self, secret_key=None, base_url=None, timeout=None):
        self.secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip('/')
        self.timeout = timeout or settings.PAYSTACK_TIMEOUT

    @property
    def headers(self):
        return {
            'Authorization': f'Bearer {self.secret_key}',
            'Content-Type': 'application/json',
        }

    def _request(self, method, path, **kwargs):
        if not self.secret_key:
            logger.error("PAYSTACK_SECRET_KEY missing in settings.")
            raise PaystackError("Server misconfiguration: Missing Paystack Key", status_code=500)

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            # Timeout is crucial to prevent server hanging
            resp = requests.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            logger.error("Paystack timed out on %s %s", method, path)
            raise PaystackError("Paystack timed out. Please try again.", status_code=504)
        except requests.exceptions.RequestException as exc:
            logger.error("Could not reach Paystack on %s %s: %s", method, path, exc)
            raise PaystackError("Network error. Could not connect to Paystack.", status_code=503)

        try:
            body = resp.json()
        except ValueError:
            logger.error("Paystack returned a non-JSON response (%s) on %s", resp.status_code, path)
            raise PaystackError("Unexpected response from Paystack.")

        if not resp.ok or not body.get('status'):
            logger.error("Paystack rejected %s %s: %s", method, path, body.get('message'))
            raise PaystackError(body.get('message') or "Paystack request failed.")
        return body['data']

    def initialize_transaction(self, email, amount, split_code=None):
        payload = {'email': email, 'amount': int(Decimal(amount) * 100)}
        if split_code:
            payload['split_code'] = split_code
        return self._request('POST', '/transaction/initialize', json=payload)

    def verify_transaction(self, reference):
        data = self._request('GET', f'/transaction/verify/{reference}')
        data['amount_naira'] = Decimal(data.get('amount') or 0) / 100
        return data

    def create_split(self, name, subaccount, share, currency='NGN'):
        # The subaccount bears the Paystack fee
        payload = {
            'name': name,
            'type': 'percentage',
            'currency': currency,
            'subaccounts': [{'subaccount': subaccount, 'share': share}],
            'bearer_type': 'subaccount',
            'bearer_subaccount': subaccount,
        }
        return self._request('POST', '/split', json=payload)
