from django.urls import path
from .views import (
    JobCreateView, JobListView, AvailableJobListView, AssignedJobListView, ActiveJobStatusView,
    JobOffersView, JobApplyView, OfferResponseView, WorkDoneView, JobCompleteView, JobCancelView
)

urlpatterns = [
    path('create/', JobCreateView.as_view(), name='job_create'),
    path('', JobListView.as_view(), name='job_list'),
    path('available/', AvailableJobListView.as_view(), name='available_jobs'),
    path('assigned/', AssignedJobListView.as_view(), name='assigned_jobs'),
    path('active-status/', ActiveJobStatusView.as_view(), name='active_job_status'),
    path('<int:id>/offers/', JobOffersView.as_view(), name='job_offers'),
    path('<int:id>/apply/', JobApplyView.as_view(), name='job_apply'),
    path('offers/<int:id>/respond/', OfferResponseView.as_view(), name='offer_respond'),
    path('<int:id>/work-done/', WorkDoneView.as_view(), name='job_work_done'),
    path('<int:id>/complete/', JobCompleteView.as_view(), name='job_complete'),
    path('<int:id>/cancel/', JobCancelView.as_view(), name='job_cancel'),
]
