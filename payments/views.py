import logging
import secrets

from django.conf import settings
from django.db import IntegrityError, transaction as db_transaction
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from cores.models import AuditLog

from .models import Token, Transaction
from .paystack import PaystackClient, PaystackError
from .serializers import (
    InitializePaymentSerializer,
    SaveTransactionSerializer,
    SplitSerializer,
    TokenSerializer,
    TransactionSerializer,
)

logger = logging.getLogger(__name__)


def issue_token(transaction):
    """Create the single token for a paid transaction, or return the existing one."""
    existing = Token.objects.filter(reference=transaction.reference).first()
    if existing:
        return existing, False

    for _ in range(5):
        code = f"{settings.CBT_TOKEN_PREFIX}{100000 + secrets.randbelow(900000)}"
        try:
            with db_transaction.atomic():
                token = Token.objects.create(
                    token=code,
                    student_email=transaction.email,
                    amount=transaction.amount,
                    reference=transaction.reference,
                    status=Token.Status.SUCCESS,
                )
            return token, True
        except IntegrityError:
            # Either the code collided or another request issued this reference's token
            existing = Token.objects.filter(reference=transaction.reference).first()
            if existing:
                return existing, False
    raise IntegrityError("Could not generate a unique token code")


class InitializePaymentView(views.APIView):
    """Starts a Paystack payment for an exam token."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = InitializePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        amount = serializer.validated_data['amount']

        try:
            data = PaystackClient().initialize_transaction(email, amount, split_code=settings.PAYSTACK_SPLIT_CODE)
        except PaystackError as exc:
            return Response({"error": "Payment initialization failed", "details": str(exc)}, status=exc.status_code)

        Transaction.objects.create(email=email, amount=amount, reference=data['reference'])
        return Response({"authorization_url": data['authorization_url'], "reference": data['reference']})


class VerifyPaymentView(views.APIView):
    """Checks a reference with Paystack and issues a token once it is paid."""
    permission_classes = [permissions.AllowAny]

    def get(self, request, reference):
        try:
            data = PaystackClient().verify_transaction(reference)
        except PaystackError as exc:
            return Response({"error": "Payment verification failed", "details": str(exc)}, status=exc.status_code)

        gateway_status = data.get('status')
        transaction = Transaction.objects.filter(reference=reference).first()
        if not transaction:
            return Response({"message": "Transaction not found"}, status=status.HTTP_404_NOT_FOUND)

        if gateway_status in Transaction.Status.values:
            transaction.status = gateway_status
            transaction.save(update_fields=['status'])

        if gateway_status != Transaction.Status.SUCCESS:
            return Response(
                {"message": "Payment not successful", "status": gateway_status},
                status=status.HTTP_400_BAD_REQUEST
            )

        token, created = issue_token(transaction)
        if created:
            logger.info("Issued token %s for reference %s", token.token, reference)
            message = "Payment verified and token issued"
        else:
            message = "Payment already verified, token exists"

        return Response({
            "message": message,
            "token": token.token,
            "transaction": TransactionSerializer(transaction).data,
        })


class CreateSplitView(views.APIView):
    """Creates the reusable Paystack split group for token sales."""
    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        serializer = SplitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            data = PaystackClient().create_split(**serializer.validated_data)
        except PaystackError as exc:
            return Response({"error": "Failed to create split group", "details": str(exc)}, status=exc.status_code)

        return Response({
            "message": "Split group created successfully",
            "split_code": data.get('split_code'),
            "full_data": data,
        })


class SaveTransactionView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SaveTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        Transaction.objects.get_or_create(
            reference=serializer.validated_data['reference'],
            defaults={
                'email': serializer.validated_data['email'],
                'amount': serializer.validated_data['amount'],
            }
        )
        return Response({"message": "Transaction saved"})


class TokenListView(generics.ListAPIView):
    queryset = Token.objects.all().order_by('-created_at')
    serializer_class = TokenSerializer
    permission_classes = [permissions.IsAdminUser]


class ValidateTokenView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, token):
        found = Token.objects.filter(token=token).first()
        if not found:
            return Response({"valid": False, "message": "Token not found."}, status=status.HTTP_404_NOT_FOUND)
        if found.status != Token.Status.SUCCESS:
            return Response(
                {"valid": False, "message": "Token is not valid or already used."},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response({"valid": True})


class MarkTokenUsedView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def patch(self, request, token):
        # Conditional update so a token can only be spent once
        updated = Token.objects.filter(token=token, status=Token.Status.SUCCESS).update(status=Token.Status.USED)
        if not updated:
            if Token.objects.filter(token=token).exists():
                return Response(
                    {"success": False, "message": "Token is not valid or already used"},
                    status=status.HTTP_400_BAD_REQUEST
                )
            return Response({"success": False, "message": "Token not found"}, status=status.HTTP_404_NOT_FOUND)

        found = Token.objects.get(token=token)
        AuditLog.record(request.user, AuditLog.Action.TOKEN, 'Token', found.id, f"Token {found.token} marked as used")
        return Response({"success": True, "message": "Token marked as used", "token": TokenSerializer(found).data})
