"""
Staff login.

Returns a DRF auth token used as ``Authorization: Token <key>`` on the
staff endpoints, together with the user's role and assigned counter.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Counter
from .serializers.auth import LoginSerializer
from .throttles import LoginRateThrottle

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    user = authenticate(request, username=vd['username'], password=vd['password'])
    if not user:
        logger.warning("failed login for %r from %s", vd['username'], request.META.get('REMOTE_ADDR'))
        raise AuthenticationFailed('invalid username or password')

    token_obj, _ = Token.objects.get_or_create(user=user)
    counter = Counter.objects.filter(assigned_user=user).only('id').first()
    return Response({
        'ok': True,
        'data': {
            'token': token_obj.key,
            'userId': user.id,
            'username': user.username,
            'role': user.role,
            'departmentId': user.department_id,
            'counterId': counter.id if counter else None,
        },
    })
