# donors/serializers.py
from rest_framework import serializers

from algorithms.blood_compatibility import normalize_blood_type
from algorithms.donor_status import Status
from algorithms.smart_match import SORT_CHOICES, SORT_PRIORITY
from donors.services import SORT_DONATIONS, SORT_MATCH, SORT_RECENT
from donors.validators import is_future_date, validate_donor_data
from .models import Donor, DonationHistory, DonorVerification


class DonorStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Status.CHOICES)
    can_donate = serializers.BooleanField()
    days_since_donation = serializers.IntegerField(allow_null=True)
    days_until_eligible = serializers.IntegerField()
    progress = serializers.FloatField()
    message = serializers.CharField()


class DonorSerializer(serializers.ModelSerializer):
    # Plain text so lowercase input reaches validate_blood_group
    blood_group = serializers.CharField(max_length=3)
    status = serializers.SerializerMethodField()
    is_elite_donor = serializers.BooleanField(read_only=True)

    class Meta:
        model = Donor
        fields = [
            'id', 'name', 'blood_group', 'phone', 'whatsapp', 'city',
            'latitude', 'longitude', 'donation_count', 'last_donation_date',
            'last_active_at', 'is_available', 'is_verified', 'phone_verified',
            'is_elite_donor', 'status', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'donation_count', 'last_active_at', 'is_verified', 'phone_verified',
            'created_at', 'updated_at',
        ]

    def get_status(self, obj):
        return DonorStatusSerializer(obj.status).data

    def validate_blood_group(self, value):
        normalized = normalize_blood_type(value)
        if normalized is None:
            raise serializers.ValidationError("Invalid blood group.")
        return normalized

    def validate_last_donation_date(self, value):
        if is_future_date(value):
            raise serializers.ValidationError("Donation date cannot be in the future.")
        return value

    def validate(self, attrs):
        # Full registration rules on create, merged with the instance on update
        merged = {}
        if self.instance is not None:
            merged = {f: getattr(self.instance, f) for f in ('name', 'blood_group', 'city', 'phone', 'whatsapp')}
        merged.update(attrs)
        is_valid, errors = validate_donor_data(merged)
        if not is_valid:
            raise serializers.ValidationError(errors)
        if not attrs.get('whatsapp') and self.instance is None:
            attrs['whatsapp'] = attrs['phone']
        return attrs


class DonorPublicSerializer(DonorSerializer):
    """Listing for anonymous visitors: no coordinates"""

    class Meta(DonorSerializer.Meta):
        fields = [f for f in DonorSerializer.Meta.fields if f not in ('latitude', 'longitude')]


class DonationHistorySerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.name', read_only=True)

    class Meta:
        model = DonationHistory
        fields = ['id', 'donor', 'donor_name', 'emergency', 'date_donated', 'units_donated', 'notes', 'created_at']
        read_only_fields = ['donor', 'created_at']


class LogDonationSerializer(serializers.Serializer):
    date_donated = serializers.DateField(required=False)
    units_donated = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_date_donated(self, value):
        if is_future_date(value):
            raise serializers.ValidationError("Donation date cannot be in the future.")
        return value


class DonorSearchSerializer(serializers.Serializer):
    blood_group = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    eligible_only = serializers.BooleanField(default=True)
    sort_by = serializers.ChoiceField(choices=[SORT_MATCH, SORT_DONATIONS, SORT_RECENT], default=SORT_MATCH)


class SmartMatchRequestSerializer(serializers.Serializer):
    blood_group = serializers.CharField()
    city = serializers.CharField(required=False, allow_blank=True)
    lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, min_value=-180, max_value=180)
    max_distance_km = serializers.FloatField(required=False, min_value=0)
    sort_by = serializers.ChoiceField(choices=SORT_CHOICES, default=SORT_PRIORITY)
    eligible_only = serializers.BooleanField(default=False)
    emergency_override = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if ('lat' in attrs) != ('lng' in attrs):
            raise serializers.ValidationError("lat and lng must be given together.")
        return attrs

    @property
    def patient_location(self):
        data = self.validated_data
        if 'lat' in data:
            return data['lat'], data['lng']
        return None


class MatchResultSerializer(serializers.Serializer):
    donor = DonorPublicSerializer()
    score = serializers.IntegerField()
    distance_km = serializers.FloatField(allow_null=True)
    status = DonorStatusSerializer()


class VerificationStartSerializer(serializers.Serializer):
    phone = serializers.CharField()


class VerificationOTPSerializer(serializers.Serializer):
    otp = serializers.RegexField(r'^\d{6}$')


class DocumentSubmitSerializer(serializers.Serializer):
    document_url = serializers.URLField()
    document_type = serializers.CharField(max_length=50)


class VerificationDecisionSerializer(serializers.Serializer):
    approved = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class DonorVerificationSerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.name', read_only=True)
    level = serializers.CharField(read_only=True)

    class Meta:
        model = DonorVerification
        fields = [
            'id', 'donor', 'donor_name', 'level', 'phone', 'phone_verified',
            'document_url', 'document_type', 'document_submitted_at',
            'document_verified', 'admin_verified', 'status', 'verified_at',
        ]

