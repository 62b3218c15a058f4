from django.contrib import admin

from donors import services, verification
from .models import Donor, DonationHistory, DonorVerification


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display   = ['name', 'blood_group', 'city', 'donation_count', 'is_available', 'is_verified', 'status_display']
    list_filter    = ['blood_group', 'is_available', 'is_verified', 'city']
    search_fields  = ['name', 'phone', 'city', 'user__username']
    ordering       = ['-created_at']
    readonly_fields = ['donation_count', 'last_active_at', 'verified_at', 'created_at', 'updated_at']

    fieldsets = (
        ('Personal Info', {
            'fields': ('user', 'name', 'blood_group', 'phone', 'whatsapp', 'city')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude')
        }),
        ('Donation Stats', {
            'fields': ('donation_count', 'last_donation_date', 'last_active_at', 'is_available')
        }),
        ('Verification', {
            'fields': ('is_verified', 'phone_verified', 'verified_at'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description='Status')
    def status_display(self, obj):
        return obj.status.status

    actions = ['log_donation_today', 'toggle_availability']

    # Admin action: record an offline donation
    @admin.action(description='Log a donation today for selected donors')
    def log_donation_today(self, request, queryset):
        logged = 0
        for donor in queryset:
            services.log_donation(donor, notes='Logged from admin')
            logged += 1
        self.message_user(request, f'Logged a donation for {logged} donor(s).')

    @admin.action(description='Toggle availability of selected donors')
    def toggle_availability(self, request, queryset):
        for donor in queryset:
            services.toggle_availability(donor)
        self.message_user(request, f'Toggled availability of {queryset.count()} donor(s).')


@admin.register(DonationHistory)
class DonationHistoryAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'emergency', 'date_donated', 'units_donated']
    list_filter   = ['date_donated']
    search_fields = ['donor__name', 'emergency__hospital']
    ordering      = ['-date_donated']
    readonly_fields = ['created_at']


@admin.register(DonorVerification)
class DonorVerificationAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'level_display', 'status', 'phone_verified', 'document_type', 'document_submitted_at']
    list_filter   = ['status', 'phone_verified', 'admin_verified']
    search_fields = ['donor__name', 'phone']
    ordering      = ['document_submitted_at']
    readonly_fields = ['otp_hash', 'otp_expires_at', 'otp_attempts', 'phone_verified_at', 'verified_at', 'verified_by', 'updated_at']

    @admin.display(description='Level')
    def level_display(self, obj):
        return obj.level

    actions = ['approve_selected', 'reject_selected']

    @admin.action(description='Approve selected verifications')
    def approve_selected(self, request, queryset):
        for record in queryset.select_related('donor'):
            verification.process_verification(record.donor, request.user, approved=True)
        self.message_user(request, f'Approved {queryset.count()} verification(s).')

    @admin.action(description='Reject selected verifications')
    def reject_selected(self, request, queryset):
        for record in queryset.select_related('donor'):
            verification.process_verification(record.donor, request.user, approved=False)
        self.message_user(request, f'Rejected {queryset.count()} verification(s).')
