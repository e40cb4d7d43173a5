from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .permissions import IsSuperuser
from .models import ManagementLog
from .serializers import PendingFreelancerSerializer, ReviewSerializer, ManagementLogSerializer
from apps.payments.ledger import waive_entry
from apps.payments.serializers import CommissionLedgerEntrySerializer, WaiveEntrySerializer
from apps.users.models import FreelancerProfile
from apps.users.services import review_freelancer_profile
from core.pagination import paginate
from core.utils import success_response_data
import logging

logger = logging.getLogger(__name__)

AWAITING_REVIEW = ('pending', 'under_review', 'resubmitted')


class PendingFreelancerListView(APIView):
    permission_classes = [IsAuthenticated, IsSuperuser]

    @swagger_auto_schema(
        operation_description="Freelancer profiles waiting for verification, oldest first.",
        manual_parameters=[
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: PendingFreelancerSerializer(many=True)}
    )
    def get(self, request):
        profiles = FreelancerProfile.objects.filter(
            verification_status__in=AWAITING_REVIEW
        ).select_related('user').order_by('created_at')
        return paginate(request, self, profiles, PendingFreelancerSerializer)


class FreelancerReviewView(APIView):
    permission_classes = [IsAuthenticated, IsSuperuser]

    @swagger_auto_schema(
        operation_description="Approve, reject or mark a freelancer profile as under review.",
        request_body=ReviewSerializer,
        responses={200: PendingFreelancerSerializer, 400: 'Bad Request', 404: 'Not Found'}
    )
    def post(self, request, id):
        serializer = ReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        profile = review_freelancer_profile(
            request.user, id,
            serializer.validated_data['action'],
            serializer.validated_data.get('reason'),
        )
        return Response(success_response_data(
            f"Profile {profile.verification_status}",
            profile=PendingFreelancerSerializer(profile).data,
            freelancer_code=profile.freelancer_code,
        ))


class WaiveCommissionView(APIView):
    permission_classes = [IsAuthenticated, IsSuperuser]

    @swagger_auto_schema(
        operation_description="Waive a pending commission ledger entry.",
        request_body=WaiveEntrySerializer,
        responses={200: CommissionLedgerEntrySerializer, 404: 'Not Found', 409: 'Entry not pending'}
    )
    def post(self, request, id):
        serializer = WaiveEntrySerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        entry = waive_entry(request.user, id, serializer.validated_data['notes'])
        return Response(success_response_data(
            'Commission entry waived',
            entry=CommissionLedgerEntrySerializer(entry).data,
        ))


class ManagementLogListView(APIView):
    permission_classes = [IsAuthenticated, IsSuperuser]

    @swagger_auto_schema(
        operation_description="Audit trail of admin actions, newest first.",
        responses={200: ManagementLogSerializer(many=True)}
    )
    def get(self, request):
        logs = ManagementLog.objects.select_related('admin')
        return paginate(request, self, logs, ManagementLogSerializer)
