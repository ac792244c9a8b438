from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import CanManageBeds
from billing.serializers.records import AssignBedSerializer, VisitRefSerializer
from billing.services.inpatient import assign_bed, release_bed
from billing.views.billing import STATS_CACHE_KEY


def _assignment(a) -> dict:
    return {
        'id': a.id,
        'visitId': a.visit_id,
        'roomId': a.room_id,
        'bedNumber': a.bed_number,
        'assignedAt': a.assigned_at.isoformat(),
        'releasedAt': a.released_at.isoformat() if a.released_at else None,
        'billingItemId': a.billing_item_id,
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageBeds])
def assign_bed_view(request):
    s = AssignBedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    assignment = assign_bed(vd['visitId'], vd['roomId'], vd['bedNumber'], user=request.user)
    return Response({'ok': True, 'data': _assignment(assignment)}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageBeds])
def release_bed_view(request):
    """Free the bed and charge the stay to the visit's bill."""
    s = VisitRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    assignment = release_bed(s.validated_data['visitId'], user=request.user)
    cache.delete(STATS_CACHE_KEY)
    data = _assignment(assignment)
    item = assignment.billing_item
    if item is not None:
        data['charge'] = {'quantity': item.quantity, 'unitPrice': str(item.unit_price),
                          'totalPrice': str(item.total_price)}
    return Response({'ok': True, 'data': data})
