from django.contrib import admin
from .models import User, ClientProfile, FreelancerProfile

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'role', 'is_superuser', 'is_active')
    list_filter = ('role', 'is_superuser', 'is_active')
    search_fields = ('username', 'email', 'phone_number')

@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'full_name', 'is_profile_complete', 'total_jobs_posted', 'total_spent')
    search_fields = ('user__username', 'full_name')

@admin.register(FreelancerProfile)
class FreelancerProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'full_name', 'freelancer_code', 'verification_status', 'completed_jobs', 'total_earnings')
    list_filter = ('verification_status',)
    search_fields = ('user__username', 'full_name', 'freelancer_code')
