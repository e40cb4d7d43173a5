from django.contrib import admin
from .models import Job, Offer

@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('title', 'client', 'freelancer', 'amount', 'status', 'payment_status', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method')
    search_fields = ('title', 'client__username', 'freelancer__username', 'payment_order_id')

@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = ('job', 'freelancer', 'offered_amount', 'offer_type', 'status', 'created_at')
    list_filter = ('status', 'offer_type')
    search_fields = ('job__title', 'freelancer__username')
