from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..services.counters import (
    get_counter_queue_details,
    get_counter_waiting_list,
    get_display_data,
    list_category_load,
)
from ..services.queue import format_token


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def counter_waiting(request, counter_id: int):
    """Pending tokens of a counter (WAITING and CALLED) in serving order."""
    tokens = get_counter_waiting_list(counter_id)
    return Response({'ok': True, 'data': [format_token(t) for t in tokens]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def counter_details(request, counter_id: int):
    return Response({'ok': True, 'data': get_counter_queue_details(counter_id)})


@api_view(['GET'])
@permission_classes([AllowAny])
def counter_display(request, counter_id: int):
    """Public display board data; no authentication."""
    return Response({'ok': True, 'data': get_display_data(counter_id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def category_load(request, category_id: int):
    return Response({'ok': True, 'data': list_category_load(category_id)})
