from decimal import Decimal
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from cores.models import AuditLog

from .models import Token, Transaction
from .views import issue_token

User = get_user_model()


def paystack_response(data, ok=True, message='ok'):
    response = mock.Mock(ok=ok, status_code=200 if ok else 400)
    response.json.return_value = {'status': ok, 'message': message, 'data': data}
    return response


@override_settings(PAYSTACK_SECRET_KEY='sk_test_x', PAYSTACK_SPLIT_CODE='', CBT_TOKEN_PREFIX='CBT-')
class PaymentFlowTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    @mock.patch('payments.paystack.requests.request')
    def test_initialize_records_pending_transaction(self, request):
        request.return_value = paystack_response({
            'authorization_url': 'https://checkout.paystack.com/abc', 'reference': 'ref-001'
        })
        response = self.client.post(
            '/api/payments/initialize/', {'email': 'ada@student.test', 'amount': '2500.00'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reference'], 'ref-001')

        transaction = Transaction.objects.get(reference='ref-001')
        self.assertEqual(transaction.status, Transaction.Status.PENDING)
        self.assertEqual(transaction.amount, Decimal('2500.00'))
        # Sent in kobo
        self.assertEqual(request.call_args.kwargs['json']['amount'], 250000)
        self.assertNotIn('split_code', request.call_args.kwargs['json'])

    def test_initialize_rejects_bad_amount(self):
        response = self.client.post(
            '/api/payments/initialize/', {'email': 'ada@student.test', 'amount': '0'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('payments.paystack.requests.request')
    def test_verify_issues_a_single_token(self, request):
        Transaction.objects.create(email='ada@student.test', amount=Decimal('2500.00'), reference='ref-001')
        request.return_value = paystack_response({'status': 'success', 'amount': 250000, 'reference': 'ref-001'})

        response = self.client.get('/api/payments/verify/ref-001/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], "Payment verified and token issued")
        token = response.data['token']
        self.assertTrue(token.startswith('CBT-'))
        self.assertEqual(len(token), len('CBT-') + 6)
        self.assertEqual(Transaction.objects.get(reference='ref-001').status, Transaction.Status.SUCCESS)

        response = self.client.get('/api/payments/verify/ref-001/')
        self.assertEqual(response.data['token'], token)
        self.assertEqual(response.data['message'], "Payment already verified, token exists")
        self.assertEqual(Token.objects.filter(reference='ref-001').count(), 1)

    @mock.patch('payments.paystack.requests.request')
    def test_failed_payment_issues_no_token(self, request):
        Transaction.objects.create(email='ada@student.test', amount=Decimal('2500.00'), reference='ref-002')
        request.return_value = paystack_response({'status': 'failed', 'amount': 250000, 'reference': 'ref-002'})

        response = self.client.get('/api/payments/verify/ref-002/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Transaction.objects.get(reference='ref-002').status, Transaction.Status.FAILED)
        self.assertFalse(Token.objects.exists())

    @mock.patch('payments.paystack.requests.request')
    def test_verify_unknown_reference(self, request):
        request.return_value = paystack_response({'status': 'success', 'amount': 100, 'reference': 'ghost'})
        response = self.client.get('/api/payments/verify/ghost/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch('payments.paystack.requests.request', side_effect=requests.exceptions.Timeout)
    def test_gateway_timeout(self, request):
        response = self.client.get('/api/payments/verify/ref-001/')
        self.assertEqual(response.status_code, status.HTTP_504_GATEWAY_TIMEOUT)

    @mock.patch('payments.paystack.requests.request')
    def test_gateway_rejection(self, request):
        request.return_value = paystack_response(None, ok=False, message='Invalid key')
        response = self.client.post(
            '/api/payments/initialize/', {'email': 'ada@student.test', 'amount': '100'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['details'], 'Invalid key')
        self.assertFalse(Transaction.objects.exists())

    @override_settings(PAYSTACK_SECRET_KEY='')
    @mock.patch('payments.paystack.requests.request')
    def test_missing_secret_key(self, request):
        response = self.client.get('/api/payments/verify/ref-001/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        request.assert_not_called()

    def test_save_transaction_is_idempotent(self):
        payload = {'email': 'ada@student.test', 'amount': '2500.00', 'reference': 'ref-009'}
        self.client.post('/api/transactions/save/', payload, format='json')
        response = self.client.post('/api/transactions/save/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Transaction.objects.filter(reference='ref-009').count(), 1)


class TokenUsageTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        transaction = Transaction.objects.create(
            email='ada@student.test', amount=Decimal('2500.00'), reference='ref-001',
            status=Transaction.Status.SUCCESS
        )
        self.token, created = issue_token(transaction)
        self.assertTrue(created)

    def test_issue_token_returns_existing(self):
        token, created = issue_token(Transaction.objects.get(reference='ref-001'))
        self.assertFalse(created)
        self.assertEqual(token.pk, self.token.pk)

    def test_validate_then_spend(self):
        response = self.client.get(f'/api/tokens/validate/{self.token.token}/')
        self.assertEqual(response.data, {'valid': True})

        response = self.client.patch(f'/api/tokens/mark-used/{self.token.token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['token']['status'], Token.Status.USED)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.TOKEN).exists())

        # Spent tokens can't be validated or spent again
        response = self.client.get(f'/api/tokens/validate/{self.token.token}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(f'/api/tokens/mark-used/{self.token.token}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_token(self):
        response = self.client.get('/api/tokens/validate/CBT-000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.patch('/api/tokens/mark-used/CBT-000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_token_list_is_admin_only(self):
        response = self.client.get('/api/tokens/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )
        self.client.force_authenticate(user=admin)
        response = self.client.get('/api/tokens/')
        self.assertEqual(len(response.data), 1)
