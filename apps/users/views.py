from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .serializers import (
    RegisterSerializer, LoginSerializer, UserSerializer,
    ClientProfileSerializer, FreelancerProfileSerializer, FreelancerSearchSerializer
)
from .models import ClientProfile, FreelancerProfile
from .services import search_freelancers, save_client_profile, submit_freelancer_profile, verification_summary
from core.pagination import paginate
from core.utils import IsClient, IsFreelancer, success_response_data
import logging

logger = logging.getLogger(__name__)

TOKEN_RESPONSE = openapi.Response(
    description='Authenticated',
    schema=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'token': openapi.Schema(type=openapi.TYPE_STRING),
            'user': openapi.Schema(type=openapi.TYPE_OBJECT),
        }
    )
)


class AuthRegisterView(APIView):
    permission_classes = []

    @swagger_auto_schema(
        operation_description="Register a client or freelancer account and receive an API token.",
        request_body=RegisterSerializer,
        responses={201: TOKEN_RESPONSE, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        token, _ = Token.objects.get_or_create(user=user)
        return Response({
            "token": token.key,
            "user": UserSerializer(user).data
        }, status=status.HTTP_201_CREATED)


class AuthLoginView(APIView):
    permission_classes = []

    @swagger_auto_schema(
        operation_description="Log in with email, phone number or username.",
        request_body=LoginSerializer,
        responses={200: TOKEN_RESPONSE, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        token, _ = Token.objects.get_or_create(user=user)
        return Response({
            "token": token.key,
            "user": UserSerializer(user).data
        }, status=status.HTTP_200_OK)


class ClientProfileView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Get the authenticated client's profile.",
        responses={200: ClientProfileSerializer, 404: 'Not Found'}
    )
    def get(self, request):
        try:
            profile = request.user.client_profile
        except ClientProfile.DoesNotExist:
            return Response({'success': False, 'error': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(success_response_data('Profile loaded', profile=ClientProfileSerializer(profile).data))

    @swagger_auto_schema(
        operation_description="Create or update the client profile. Saving marks it complete.",
        request_body=ClientProfileSerializer,
        responses={200: ClientProfileSerializer, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = ClientProfileSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        profile = save_client_profile(request.user, serializer.validated_data)
        return Response(success_response_data('Profile saved successfully', profile=ClientProfileSerializer(profile).data))


class FreelancerProfileView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Get the authenticated freelancer's profile.",
        responses={200: FreelancerProfileSerializer, 404: 'Not Found'}
    )
    def get(self, request):
        try:
            profile = request.user.freelancer_profile
        except FreelancerProfile.DoesNotExist:
            return Response({'success': False, 'error': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(success_response_data('Profile loaded', profile=FreelancerProfileSerializer(profile).data))

    @swagger_auto_schema(
        operation_description="Submit the freelancer profile for verification.",
        request_body=FreelancerProfileSerializer,
        responses={200: FreelancerProfileSerializer, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = FreelancerProfileSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        profile = submit_freelancer_profile(request.user, serializer.validated_data)
        return Response(success_response_data(
            'Profile submitted for verification. Please wait for admin approval.',
            profile=FreelancerProfileSerializer(profile).data,
            verification_status=profile.verification_status,
        ))


class VerificationStatusView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @swagger_auto_schema(
        operation_description="Verification status of the freelancer profile and the next action to take.",
        responses={200: 'Verification summary'}
    )
    def get(self, request):
        summary = verification_summary(request.user)
        return Response({'success': True, 'data': summary})


class FreelancerSearchView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Search approved freelancers by freelancer code.",
        manual_parameters=[
            openapi.Parameter('freelancer_code', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: FreelancerSearchSerializer(many=True)}
    )
    def get(self, request):
        profiles = search_freelancers(request.query_params.get('freelancer_code'))
        return paginate(request, self, profiles, FreelancerSearchSerializer)
