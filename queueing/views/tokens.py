"""
Token endpoints: issue a token, read it, move it through its lifecycle
and call the next patient at a counter.

All business rules live in :mod:`queueing.services`; these views only
validate input and shape the response.  Service errors propagate to the
project exception handler, which renders them as tagged error bodies.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import User
from ..permissions import IsStaffRole
from ..serializers.tokens import CallNextSerializer, TokenCancelSerializer, TokenCreateSerializer, TokenStatusSerializer
from ..services.queue import format_token
from ..services.router import route_arrival
from ..services.tokens import call_next, cancel_token, get_token, transition


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_token(request):
    """Route an arriving patient to the least loaded counter of a category."""
    s = TokenCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user: User = request.user  # type: ignore[assignment]
    token = route_arrival(
        vd['patientId'], vd['categoryId'], vd.get('priority'),
        notes=vd.get('notes', ''), issued_by=user,
    )
    return Response({'ok': True, 'data': format_token(get_token(token.id))}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def token_detail(request, token_id: int):
    token = get_token(token_id)
    data = format_token(token)
    data['transitionHistory'] = [
        {
            'from': t.from_status,
            'to': t.to_status,
            'operator': t.operator.username if t.operator else '',
            'timestamp': t.timestamp.isoformat(),
            'reason': t.reason,
        }
        for t in token.transitions.select_related('operator').order_by('timestamp', 'id')
    ]
    return Response({'ok': True, 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def token_update_status(request, token_id: int):
    s = TokenStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    token = transition(token_id, vd['status'], operator=request.user, reason=vd.get('reason', ''))
    return Response({'ok': True, 'data': format_token(get_token(token.id))})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def token_cancel(request, token_id: int):
    s = TokenCancelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    token = cancel_token(token_id, operator=request.user, reason=s.validated_data.get('reason', ''))
    return Response({'ok': True, 'data': format_token(get_token(token.id))})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def queue_call_next(request):
    """Call the next waiting patient at ``counterId``, or at the counter assigned to ``staffId``."""
    s = CallNextSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if vd.get('counterId'):
        token = call_next(vd['counterId'], operator=request.user)
    else:
        token = call_next(vd['staffId'], staff=True, operator=request.user)
    return Response({'ok': True, 'data': format_token(get_token(token.id))})
