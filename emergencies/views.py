# emergencies/views.py
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts import roles
from accounts.decorators import permission_required
from accounts.models import role_of
from donors.serializers import MatchResultSerializer
from emergencies import services
from emergencies.models import Emergency
from emergencies.serializers import (
    CancelSerializer,
    EmergencyResponseSerializer,
    EmergencySerializer,
    FulfillSerializer,
)


class EmergencyViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Emergency blood requests.

    Anyone can browse active emergencies, register a view or a response and
    get the WhatsApp share text. Admins create, fulfil and cancel them.
    """
    queryset = Emergency.objects.all().order_by('-created_at')
    serializer_class = EmergencySerializer

    PUBLIC_ACTIONS = ('list', 'retrieve', 'register_view', 'respond', 'whatsapp')

    def get_permissions(self):
        if self.action in self.PUBLIC_ACTIONS:
            return [AllowAny()]
        return [permission_required('create_emergency')()]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        # Closed emergencies are only listed for admins who ask for them
        show_all = params.get('all') in ('1', 'true') and roles.can(role_of(self.request.user), 'create_emergency')
        if self.action == 'list' and not show_all:
            queryset = queryset.filter(active=True)

        blood_group = params.get('blood_group')
        if blood_group and blood_group != 'all':
            queryset = queryset.filter(blood_group=blood_group.strip().upper())

        city = params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city)
        return queryset

    def perform_create(self, serializer):
        try:
            serializer.instance = services.create_emergency(serializer.validated_data, created_by=self.request.user)
        except DjangoValidationError as exc:
            raise ValidationError(exc.message_dict)

    def _change_status(self, change, *args):
        emergency = self.get_object()
        try:
            change(emergency, *args)
        except services.EmergencyStateError as exc:
            raise ValidationError({'status': str(exc)})
        return Response(EmergencySerializer(emergency).data)

    @action(detail=True, methods=['get'], url_path='matching-donors')
    def matching_donors(self, request, pk=None):
        emergency = self.get_object()
        matches = services.get_matching_donors(emergency)
        return Response({
            'emergency': emergency.id,
            'count': len(matches),
            'results': MatchResultSerializer(matches, many=True).data,
        })

    @action(detail=True, methods=['post'])
    def fulfill(self, request, pk=None):
        serializer = FulfillSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._change_status(services.fulfill_emergency, serializer.validated_data['fulfilled_by'] or None)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._change_status(services.cancel_emergency, serializer.validated_data['reason'])

    @action(detail=True, methods=['post'], url_path='view')
    def register_view(self, request, pk=None):
        emergency = self.get_object()
        return Response({'id': emergency.id, 'view_count': services.increment_view_count(emergency)})

    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        """Record a click / call / message; linked donors are attributed automatically."""
        emergency = self.get_object()
        donor = getattr(request.user, 'donor_profile', None) if request.user.is_authenticated else None
        try:
            response = services.record_donor_response(
                emergency,
                donor=donor,
                response_type=request.data.get('response_type', 'clicked'),
            )
        except DjangoValidationError as exc:
            raise ValidationError(exc.message_dict)
        except services.EmergencyStateError as exc:
            raise ValidationError({'status': str(exc)})

        return Response({
            **EmergencyResponseSerializer(response).data,
            'response_count': emergency.response_count,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def whatsapp(self, request, pk=None):
        emergency = self.get_object()
        return Response({
            'message': services.generate_whatsapp_message(emergency),
            'url': services.whatsapp_share_url(emergency),
        })
