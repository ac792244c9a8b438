from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import CanLockRecords
from billing.serializers.records import VisitRefSerializer
from billing.services.notifier import default_notifier
from billing.services.queue import serialize_billing_summary
from billing.services.records import lock_medical_record, unlock_medical_record
from billing.views.billing import STATS_CACHE_KEY


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanLockRecords])
def lock_record(request):
    """Close the clinical record and hand the visit to the cashier."""
    s = VisitRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    visit_id = s.validated_data['visitId']
    billing = lock_medical_record(visit_id, user=request.user, notifier=default_notifier())
    cache.delete(STATS_CACHE_KEY)
    return Response({'ok': True, 'data': {'visitId': visit_id, 'isLocked': True,
                                          'billing': serialize_billing_summary(billing)}})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanLockRecords])
def unlock_record(request):
    s = VisitRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    visit_id = s.validated_data['visitId']
    unlock_medical_record(visit_id, user=request.user, notifier=default_notifier())
    cache.delete(STATS_CACHE_KEY)
    return Response({'ok': True, 'data': {'visitId': visit_id, 'isLocked': False}})
