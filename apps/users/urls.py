from django.urls import path
from .views import (
    AuthRegisterView, AuthLoginView, ClientProfileView,
    FreelancerProfileView, VerificationStatusView, FreelancerSearchView
)

urlpatterns = [
    # Authentication
    path('auth/register/', AuthRegisterView.as_view(), name='auth_register'),
    path('auth/login/', AuthLoginView.as_view(), name='auth_login'),

    # Profile Management
    path('profile/client/', ClientProfileView.as_view(), name='client_profile'),
    path('profile/freelancer/', FreelancerProfileView.as_view(), name='freelancer_profile'),
    path('profile/freelancer/verification-status/', VerificationStatusView.as_view(), name='verification_status'),

    # Search
    path('search/freelancers/', FreelancerSearchView.as_view(), name='freelancer_search'),
]
