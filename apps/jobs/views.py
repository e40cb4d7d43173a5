from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .serializers import (
    JobSerializer, JobCreateSerializer, ActiveJobSerializer, OfferSerializer,
    ApplySerializer, OfferResponseSerializer, CancelJobSerializer
)
from . import services
from core.pagination import paginate
from core.utils import IsClient, IsFreelancer, success_response_data
import logging

logger = logging.getLogger(__name__)

STATUS_PARAM = openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING, description='Filter by status')
PAGE_PARAMS = [
    openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
    openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
]


class JobCreateView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Post a new job. The client profile must be complete.",
        request_body=JobCreateSerializer,
        responses={201: JobSerializer, 400: 'Bad Request', 403: 'Forbidden'}
    )
    def post(self, request):
        serializer = JobCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        job = services.post_job(request.user, **serializer.validated_data)
        return Response(
            success_response_data('Job posted successfully', job=JobSerializer(job).data),
            status=status.HTTP_201_CREATED
        )


class JobListView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Jobs posted by the authenticated client.",
        manual_parameters=[STATUS_PARAM] + PAGE_PARAMS,
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        jobs = services.list_client_jobs(request.user, status=request.query_params.get('status'))
        return paginate(request, self, jobs, JobSerializer)


class AvailableJobListView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Open jobs a freelancer can apply for.",
        manual_parameters=[
            openapi.Parameter('gender', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=['any', 'male', 'female']),
            openapi.Parameter(
                'sort', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=list(services.SORT_OPTIONS)
            ),
        ] + PAGE_PARAMS,
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        jobs = services.list_available_jobs(
            gender=request.query_params.get('gender'),
            sort=request.query_params.get('sort'),
        )
        return paginate(request, self, jobs, JobSerializer)


class AssignedJobListView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Jobs assigned to the authenticated freelancer.",
        manual_parameters=[STATUS_PARAM] + PAGE_PARAMS,
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        jobs = services.list_assigned_jobs(request.user, status=request.query_params.get('status'))
        return paginate(request, self, jobs, JobSerializer)


class ActiveJobStatusView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Whether the freelancer has an active job, and which one.",
        responses={200: 'Active job status'}
    )
    def get(self, request):
        job = services.get_active_job(request.user)
        return Response({
            'success': True,
            'data': {
                'has_active_job': job is not None,
                'active_job': ActiveJobSerializer(job).data if job else None,
            }
        })


class JobOffersView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Offers received on one of the client's jobs.",
        manual_parameters=[STATUS_PARAM] + PAGE_PARAMS,
        responses={200: OfferSerializer(many=True), 404: 'Not Found'}
    )
    def get(self, request, id):
        offers = services.list_job_offers(request.user, id, status=request.query_params.get('status'))
        return paginate(request, self, offers, OfferSerializer)


class JobApplyView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description=(
            "Apply for a job. A direct application assigns the job immediately; "
            "pickup and negotiate offers wait for the client."
        ),
        request_body=ApplySerializer,
        responses={
            201: OfferSerializer,
            402: 'Commission dues over the threshold',
            403: 'Profile not approved',
            404: 'Not Found',
            409: 'Active job or existing offer'
        }
    )
    def post(self, request, id):
        serializer = ApplySerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        offer = services.apply_for_job(request.user, id, **serializer.validated_data)
        message = 'Job assigned successfully' if offer.status == 'accepted' else 'Offer sent successfully'
        return Response(
            success_response_data(message, offer=OfferSerializer(offer).data, job=JobSerializer(offer.job).data),
            status=status.HTTP_201_CREATED
        )


class OfferResponseView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Accept or reject a pending offer. Accepting rejects every other pending offer on the job.",
        request_body=OfferResponseSerializer,
        responses={200: OfferSerializer, 404: 'Not Found', 409: 'Offer already handled'}
    )
    def post(self, request, id):
        serializer = OfferResponseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        offer = services.respond_to_offer(request.user, id, **serializer.validated_data)
        return Response(success_response_data(
            f"Offer {offer.status} successfully",
            offer=OfferSerializer(offer).data,
        ))


class WorkDoneView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Mark an assigned job as done; the client is asked to pay.",
        responses={200: JobSerializer, 404: 'Not Found', 409: 'Job not assigned'}
    )
    def post(self, request, id):
        job = services.mark_work_done(request.user, id)
        return Response(success_response_data('Job marked as done', job=JobSerializer(job).data))


class JobCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Close a paid job.",
        responses={200: JobSerializer, 404: 'Not Found', 409: 'Job not paid yet'}
    )
    def post(self, request, id):
        job = services.mark_completed(request.user, id)
        return Response(success_response_data('Job completed', job=JobSerializer(job).data))


class JobCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Cancel a job that has not been paid. Allowed for the client and the assigned freelancer.",
        request_body=CancelJobSerializer,
        responses={200: JobSerializer, 404: 'Not Found', 409: 'Job already settled'}
    )
    def post(self, request, id):
        serializer = CancelJobSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        job = services.cancel_job(request.user, id, serializer.validated_data['reason'])
        return Response(success_response_data('Job cancelled', job=JobSerializer(job).data))
