from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from apps.jobs.serializers import JobSerializer
from .models import Transaction
from .serializers import (
    WalletSerializer, TransactionSerializer, CommissionLedgerEntrySerializer,
    ClearDueSerializer, WithdrawSerializer
)
from . import ledger, settlement, wallet
from core.exceptions import MarketplaceError
from core.pagination import paginate
from core.utils import IsClient, IsFreelancer, success_response_data
from django.db.models import Q
import logging

logger = logging.getLogger(__name__)

SETTLEMENT_RESPONSE = openapi.Response(
    description='Payment processed',
    schema=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
            'message': openapi.Schema(type=openapi.TYPE_STRING),
            'data': openapi.Schema(type=openapi.TYPE_OBJECT),
        }
    )
)


def _settlement_data(result):
    data = {
        'job': JobSerializer(result['job']).data,
        'transaction': TransactionSerializer(result['transaction']).data,
        'commission_amount': result['commission_amount'],
        'freelancer_amount': result['freelancer_amount'],
        'ledger_entry': CommissionLedgerEntrySerializer(result['ledger_entry']).data,
    }
    if 'wallet' in result:
        data['wallet'] = WalletSerializer(result['wallet']).data
    return data


class WalletPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Pay for a finished job from the client's wallet. The job is completed in one step.",
        responses={200: SETTLEMENT_RESPONSE, 400: 'Insufficient balance', 404: 'Not Found', 409: 'Job not ready'}
    )
    def post(self, request, id):
        result = settlement.pay_with_wallet(request.user, id)
        return Response(success_response_data('Payment completed successfully', **_settlement_data(result)))


class CashPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Record that the client paid the freelancer in cash. The commission becomes owed.",
        responses={200: SETTLEMENT_RESPONSE, 404: 'Not Found', 409: 'Job not ready'}
    )
    def post(self, request, id):
        result = settlement.pay_with_cash(request.user, id)
        return Response(success_response_data('Cash payment processed successfully', **_settlement_data(result)))


class GatewayPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Start a PhonePe payment for a job and get the pay page url.",
        responses={200: SETTLEMENT_RESPONSE, 404: 'Not Found', 409: 'Job not ready', 502: 'Gateway error'}
    )
    def post(self, request, id):
        result = settlement.initiate_gateway_payment(request.user, id)
        return Response(success_response_data('Payment initiated successfully', **result))


class PaymentCallbackView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    @swagger_auto_schema(
        operation_description="PhonePe server-to-server callback. Always acknowledged with 200.",
        request_body=openapi.Schema(type=openapi.TYPE_OBJECT),
        responses={200: 'Acknowledged'}
    )
    def post(self, request):
        logger.debug(f"Received payment callback: {request.data}")
        payload = request.data if isinstance(request.data, dict) else {}
        try:
            result = settlement.handle_gateway_callback(dict(payload))
            logger.info(f"Payment callback handled: {result}")
        except MarketplaceError as e:
            logger.warning(f"Payment callback rejected: {e.detail} {e.extra}")
        except Exception:
            # The gateway retries anything but a 200; failures are reconciled from the logs
            logger.exception("Payment callback processing failed")
        return Response({'success': True}, status=status.HTTP_200_OK)


class WalletView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_description="The authenticated user's wallet.", responses={200: WalletSerializer})
    def get(self, request):
        user_wallet = wallet.get_wallet(request.user)
        return Response({'success': True, 'data': {'wallet': WalletSerializer(user_wallet).data}})


class TransactionListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Transactions where the user is the client or the freelancer.",
        manual_parameters=[
            openapi.Parameter('type', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: TransactionSerializer(many=True)}
    )
    def get(self, request):
        transactions = Transaction.objects.filter(
            Q(client=request.user) | Q(freelancer=request.user)
        ).select_related('job')
        transaction_type = request.query_params.get('type')
        if transaction_type:
            transactions = transactions.filter(type=transaction_type)
        return paginate(request, self, transactions, TransactionSerializer)


class WithdrawView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Request a withdrawal of wallet balance to a bank account.",
        request_body=WithdrawSerializer,
        responses={201: TransactionSerializer, 400: 'Insufficient balance'}
    )
    def post(self, request):
        serializer = WithdrawSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        withdrawal, user_wallet = wallet.withdraw(
            request.user,
            serializer.validated_data['amount'],
            serializer.validated_data.get('bank_details'),
        )
        return Response(
            success_response_data(
                'Withdrawal requested successfully',
                transaction=TransactionSerializer(withdrawal).data,
                wallet=WalletSerializer(user_wallet).data,
            ),
            status=status.HTTP_201_CREATED
        )


class CommissionLedgerView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="The freelancer's commission ledger with the total due and work eligibility.",
        responses={200: CommissionLedgerEntrySerializer(many=True)}
    )
    def get(self, request):
        entries = ledger.ledger_entries(request.user)
        status_filter = request.query_params.get('status')
        if status_filter:
            entries = entries.filter(status=status_filter)
        dues = ledger.eligibility(request.user)
        return Response({
            'success': True,
            'data': {
                'ledger': CommissionLedgerEntrySerializer(entries, many=True).data,
                'total_due': dues['total_due'],
                'pending_count': dues['pending_count'],
                'threshold': dues['threshold'],
                'can_work': dues['can_work'],
            }
        })


class ClearDueView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Pay commission dues from the wallet, oldest entries first.",
        request_body=ClearDueSerializer,
        responses={200: 'Dues cleared', 400: 'Invalid amount or insufficient balance'}
    )
    def post(self, request):
        serializer = ClearDueSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        result = ledger.clear_due(request.user, **serializer.validated_data)
        return Response(success_response_data(
            'Commission dues cleared successfully',
            amount_paid=result['amount_paid'],
            processed_entries=result['processed_entries'],
            ledger=CommissionLedgerEntrySerializer(result['ledger'], many=True).data,
            total_due=result['total_due'],
            can_work=result['can_work'],
            wallet=WalletSerializer(result['wallet']).data,
            transaction=TransactionSerializer(result['transaction']).data,
        ))


class CanWorkView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Whether the freelancer's commission dues allow taking new work.",
        responses={200: 'Eligibility'}
    )
    def get(self, request):
        dues = ledger.eligibility(request.user)
        if dues['can_work']:
            dues['message'] = 'You can continue working'
        else:
            dues['message'] = (
                f"You have {dues['total_due']} in commission dues. Please clear dues to continue working."
            )
        return Response({'success': True, 'data': dues})
