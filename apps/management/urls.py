from django.urls import path
from .views import PendingFreelancerListView, FreelancerReviewView, WaiveCommissionView, ManagementLogListView

urlpatterns = [
    path('freelancers/pending/', PendingFreelancerListView.as_view(), name='pending_freelancers'),
    path('freelancers/<int:id>/review/', FreelancerReviewView.as_view(), name='freelancer_review'),
    path('commission-ledger/<int:id>/waive/', WaiveCommissionView.as_view(), name='commission_waive'),
    path('logs/', ManagementLogListView.as_view(), name='management_logs'),
]
