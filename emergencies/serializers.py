# emergencies/serializers.py
from rest_framework import serializers

from algorithms.blood_compatibility import normalize_blood_type
from .models import Emergency, EmergencyResponse


class EmergencySerializer(serializers.ModelSerializer):
    blood_group = serializers.CharField(max_length=3)
    hours_remaining = serializers.FloatField(read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Emergency
        fields = [
            'id', 'blood_group', 'units_needed', 'hospital', 'city',
            'contact_name', 'contact_phone', 'urgency', 'notes', 'patient_name',
            'status', 'active', 'status_notes', 'created_by_username',
            'created_at', 'updated_at', 'expires_at', 'hours_remaining',
            'view_count', 'response_count',
        ]
        read_only_fields = [
            'status', 'active', 'status_notes', 'created_at', 'updated_at',
            'expires_at', 'view_count', 'response_count',
        ]

    def validate_blood_group(self, value):
        normalized = normalize_blood_type(value)
        if normalized is None:
            raise serializers.ValidationError("Invalid blood group.")
        return normalized


class EmergencyResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmergencyResponse
        fields = ['id', 'emergency', 'donor', 'response_type', 'timestamp']
        read_only_fields = ['emergency', 'donor', 'timestamp']


class FulfillSerializer(serializers.Serializer):
    fulfilled_by = serializers.CharField(required=False, allow_blank=True, default='')


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
