from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import Token, Transaction

class InitializePaymentSerializer(serializers.Serializer):
    email = serializers.EmailField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))

class SaveTransactionSerializer(InitializePaymentSerializer):
    reference = serializers.CharField(max_length=100)

class SplitSerializer(serializers.Serializer):
    name = serializers.CharField(default='CBT Token Split Group')
    subaccount = serializers.CharField(default=lambda: settings.PAYSTACK_SUBACCOUNT)
    share = serializers.IntegerField(
        min_value=1, max_value=100, default=lambda: settings.PAYSTACK_SUBACCOUNT_SHARE
    )
    currency = serializers.CharField(max_length=3, default='NGN')

    def validate_subaccount(self, value):
        if not value:
            raise serializers.ValidationError("No Paystack subaccount configured.")
        return value

class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = ['id', 'email', 'amount', 'reference', 'status', 'created_at']

class TokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = Token
        fields = ['id', 'token', 'student_name', 'student_email', 'amount', 'reference', 'status', 'created_at']
