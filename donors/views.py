# donors/views.py
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import NotAuthenticated, NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts import roles
from accounts.decorators import permission_required
from accounts.models import role_of
from algorithms.blood_compatibility import (
    get_blood_type_info,
    get_compatibility_score,
    get_compatible_donors,
    get_compatible_recipients,
    normalize_blood_type,
)
from algorithms.donor_status import get_donor_status, get_status_display_info
from algorithms.haversine import find_nearest_city
from donors import services, verification
from donors.models import Donor
from donors.serializers import (
    DocumentSubmitSerializer,
    DonationHistorySerializer,
    DonorPublicSerializer,
    DonorSearchSerializer,
    DonorSerializer,
    DonorStatusSerializer,
    DonorVerificationSerializer,
    LogDonationSerializer,
    MatchResultSerializer,
    SmartMatchRequestSerializer,
    VerificationDecisionSerializer,
    VerificationOTPSerializer,
    VerificationStartSerializer,
)


def _is_manager(request):
    return roles.can(role_of(request.user), 'manage_donors')


def _check_owner_or_manager(request, donor):
    """Donors may act on their own record; admins on any."""
    if _is_manager(request):
        return
    if not request.user.is_authenticated:
        raise NotAuthenticated("Authentication required")
    if donor.user_id != request.user.id:
        raise PermissionDenied("You can only manage your own donor profile")


def _as_drf_error(exc):
    if hasattr(exc, 'message_dict'):
        return ValidationError(exc.message_dict)
    return ValidationError({'detail': exc.messages})


class DonorViewSet(viewsets.ModelViewSet):
    """
    Donor roster.

    Anyone may browse donors and read their status; admins create, edit and
    delete. Donors linked to a user account manage their own availability,
    donations and verification.
    """
    queryset = Donor.objects.all().order_by('-created_at')

    PUBLIC_ACTIONS = ('list', 'retrieve', 'status', 'history', 'search')
    OWNER_ACTIONS = (
        'toggle_availability', 'log_donation', 'verification_status',
        'verify_phone_start', 'verify_phone_confirm', 'submit_document',
    )

    def get_permissions(self):
        if self.action in self.PUBLIC_ACTIONS:
            return [AllowAny()]
        if self.action in self.OWNER_ACTIONS:
            return [IsAuthenticated()]
        if self.action == 'destroy':
            return [permission_required('delete_donors')()]
        if self.action == 'decide_verification':
            return [permission_required('verify_donors')()]
        return [permission_required('manage_donors')()]

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve', 'search') and not _is_manager(self.request):
            return DonorPublicSerializer
        return DonorSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        blood_group = params.get('blood_group')
        if blood_group and blood_group != 'all':
            queryset = queryset.filter(blood_group=normalize_blood_type(blood_group))

        city = params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city)

        available = params.get('available')
        if available in ('1', 'true'):
            queryset = queryset.filter(is_available=True)
        return queryset

    def perform_create(self, serializer):
        try:
            serializer.instance = services.create_donor(serializer.validated_data)
        except DjangoValidationError as exc:
            raise _as_drf_error(exc)

    def perform_update(self, serializer):
        try:
            serializer.instance = services.update_donor(serializer.instance, **serializer.validated_data)
        except DjangoValidationError as exc:
            raise _as_drf_error(exc)

    def perform_destroy(self, instance):
        services.delete_donor(instance)

    @action(detail=True, methods=['post'], url_path='toggle-availability')
    def toggle_availability(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)
        services.toggle_availability(donor)
        return Response({'id': donor.id, 'is_available': donor.is_available})

    @action(detail=True, methods=['post'], url_path='log-donation')
    def log_donation(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)

        serializer = LogDonationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            entry = services.log_donation(
                donor,
                donated_on=data.get('date_donated'),
                units=data['units_donated'],
                notes=data['notes'],
            )
        except DjangoValidationError as exc:
            raise _as_drf_error(exc)
        return Response({
            'donation': DonationHistorySerializer(entry).data,
            'donation_count': donor.donation_count,
            'is_elite_donor': donor.is_elite_donor,
            'status': DonorStatusSerializer(donor.status).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def status(self, request, pk=None):
        """Donor status; ?emergency=1 applies the 56-day emergency minimum (admins only)"""
        donor = self.get_object()
        emergency = request.query_params.get('emergency') in ('1', 'true')
        if emergency and not _is_manager(request):
            raise PermissionDenied("Emergency override is restricted to admins")

        donor_status = get_donor_status(donor, emergency_override=emergency)
        return Response({
            **DonorStatusSerializer(donor_status).data,
            'display': get_status_display_info(donor_status.status),
        })

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        donor = self.get_object()
        entries = donor.donation_history.all()
        return Response(DonationHistorySerializer(entries, many=True).data)

    @action(detail=False, methods=['get'])
    def search(self, request):
        params = DonorSearchSerializer(data=request.query_params.dict())
        params.is_valid(raise_exception=True)
        donors = services.search_donors(**params.validated_data)
        serializer = self.get_serializer(donors, many=True)
        return Response({'count': len(donors), 'results': serializer.data})

    # ---------------------------
    # Verification
    # ---------------------------
    @action(detail=True, methods=['get'], url_path='verification')
    def verification_status(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)
        info = verification.get_verification_status(donor)
        info['badge'] = verification.get_verification_badge_info(info['level'])
        return Response(info)

    @action(detail=True, methods=['post'], url_path='verify-phone/start')
    def verify_phone_start(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)

        serializer = VerificationStartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            otp = verification.start_phone_verification(donor, serializer.validated_data['phone'])
        except verification.VerificationError as exc:
            raise ValidationError({'phone': str(exc)})

        payload = {'message': 'OTP sent', 'expires_in_minutes': verification.OTP_TTL_MINUTES}
        if settings.DEBUG:
            payload['otp'] = otp
        return Response(payload)

    @action(detail=True, methods=['post'], url_path='verify-phone/confirm')
    def verify_phone_confirm(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)

        serializer = VerificationOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            record = verification.verify_phone_otp(donor, serializer.validated_data['otp'])
        except verification.VerificationError as exc:
            raise ValidationError({'otp': str(exc)})
        return Response(DonorVerificationSerializer(record).data)

    @action(detail=True, methods=['post'], url_path='verification/document')
    def submit_document(self, request, pk=None):
        donor = self.get_object()
        _check_owner_or_manager(request, donor)

        serializer = DocumentSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = verification.submit_document(donor, **serializer.validated_data)
        return Response(DonorVerificationSerializer(record).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='verification/decide')
    def decide_verification(self, request, pk=None):
        donor = self.get_object()

        serializer = VerificationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            record = verification.process_verification(
                donor,
                request.user,
                serializer.validated_data['approved'],
                notes=serializer.validated_data['notes'],
            )
        except verification.VerificationError as exc:
            raise ValidationError({'detail': str(exc)})
        return Response(DonorVerificationSerializer(record).data)


@api_view(['GET'])
@permission_classes([permission_required('verify_donors')])
def pending_verifications(request):
    records = verification.get_pending_verifications()
    return Response(DonorVerificationSerializer(records, many=True).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def smart_match_view(request):
    """
    Ranked compatible donors for a blood request.

    Body: blood_group, optional city, lat/lng, max_distance_km, sort_by,
    eligible_only and emergency_override (admins only).
    """
    serializer = SmartMatchRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if data['emergency_override'] and not _is_manager(request):
        raise PermissionDenied("Emergency override is restricted to admins")

    matches = services.match_donors(
        data['blood_group'],
        city=data.get('city') or None,
        patient_location=serializer.patient_location,
        max_distance_km=data.get('max_distance_km'),
        sort_by=data['sort_by'],
        eligible_only=data['eligible_only'],
        emergency_override=data['emergency_override'],
    )
    return Response({
        'blood_group': normalize_blood_type(data['blood_group']),
        'count': len(matches),
        'results': MatchResultSerializer(matches, many=True).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def compatibility_view(request, blood_type):
    normalized = normalize_blood_type(blood_type)
    if normalized is None:
        raise NotFound(f"Unknown blood type: {blood_type}")

    return Response({
        'blood_type': normalized,
        'can_donate_to': get_compatible_recipients(normalized),
        'can_receive_from': get_compatible_donors(normalized),
        'score': get_compatibility_score(normalized),
        'info': get_blood_type_info(normalized),
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def nearest_city_view(request):
    try:
        lat = float(request.query_params['lat'])
        lng = float(request.query_params['lng'])
    except (KeyError, TypeError, ValueError):
        raise ValidationError({'detail': "Numeric lat and lng query parameters are required."})

    nearest = find_nearest_city(lat, lng)
    if nearest is None:
        raise NotFound("No cities configured")

    city, distance = nearest
    return Response({'city': city, 'distance_km': round(distance, 2)})
