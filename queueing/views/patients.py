"""
Public patient endpoints used by the patient web page: registering a
browser push subscription and looking up one's own tokens.
"""
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from ..exceptions import NotFound
from ..serializers.patient import PatientTokensSerializer, SubscriptionSerializer
from ..services.patients import patient_tokens, save_subscription, verify_patient
from ..throttles import PatientLookupRateThrottle


@api_view(['POST'])
@permission_classes([AllowAny])
def save_push_subscription(request):
    s = SubscriptionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    saved = save_subscription(vd['userIds'], vd['subscription'])
    return Response({'ok': True, 'data': {'saved': len(saved)}})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([PatientLookupRateThrottle])
def my_tokens(request):
    s = PatientTokensSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    # Same answer for unknown patient and wrong phone
    if not verify_patient(vd['patientId'], vd['phone']):
        raise NotFound('patient not found')
    return Response({'ok': True, 'data': patient_tokens(vd['patientId'])})
