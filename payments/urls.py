from django.urls import path
from .views import (
    CreateSplitView,
    InitializePaymentView,
    MarkTokenUsedView,
    SaveTransactionView,
    TokenListView,
    ValidateTokenView,
    VerifyPaymentView,
)

urlpatterns = [
    path('payments/initialize/', InitializePaymentView.as_view(), name='initialize-payment'),
    path('payments/verify/<str:reference>/', VerifyPaymentView.as_view(), name='verify-payment'),
    path('payments/split/', CreateSplitView.as_view(), name='create-split'),
    path('transactions/save/', SaveTransactionView.as_view(), name='save-transaction'),
    path('tokens/', TokenListView.as_view(), name='tokens'),
    path('tokens/validate/<str:token>/', ValidateTokenView.as_view(), name='validate-token'),
    path('tokens/mark-used/<str:token>/', MarkTokenUsedView.as_view(), name='mark-token-used'),
]
