from django.contrib import admin

from emergencies import services
from .models import Emergency, EmergencyResponse


class EmergencyResponseInline(admin.TabularInline):
    model = EmergencyResponse
    extra = 0
    readonly_fields = ['donor', 'response_type', 'timestamp']


@admin.register(Emergency)
class EmergencyAdmin(admin.ModelAdmin):
    list_display   = ['hospital', 'blood_group', 'city', 'urgency', 'status', 'units_needed', 'response_count', 'expires_at']
    list_filter    = ['status', 'urgency', 'blood_group', 'city']
    search_fields  = ['hospital', 'city', 'contact_name', 'patient_name']
    ordering       = ['-created_at']
    readonly_fields = ['view_count', 'response_count', 'created_by', 'created_at', 'updated_at']
    filter_horizontal = ['notified_donors']
    inlines = [EmergencyResponseInline]

    fieldsets = (
        ('Request', {
            'fields': ('blood_group', 'units_needed', 'urgency', 'patient_name', 'notes')
        }),
        ('Where', {
            'fields': ('hospital', 'city', 'contact_name', 'contact_phone')
        }),
        ('Status', {
            'fields': ('status', 'active', 'status_notes', 'expires_at')
        }),
        ('Tracking', {
            'fields': ('view_count', 'response_count', 'notified_donors', 'created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
            if obj.expires_at is None:
                obj.expires_at = Emergency.expiry_for(obj.urgency)
        super().save_model(request, obj, form, change)

    actions = ['mark_fulfilled', 'expire_stale']

    @admin.action(description='Mark selected emergencies as fulfilled')
    def mark_fulfilled(self, request, queryset):
        updated = 0
        for emergency in queryset.filter(active=True):
            try:
                services.fulfill_emergency(emergency)
            except services.EmergencyStateError:
                continue
            updated += 1
        self.message_user(request, f'{updated} emergency(ies) marked as fulfilled.')

    @admin.action(description='Expire all emergencies past their expiry')
    def expire_stale(self, request, queryset):
        expired = services.expire_stale_emergencies()
        self.message_user(request, f'{expired} emergency(ies) expired.')
