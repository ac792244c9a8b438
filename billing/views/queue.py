from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import CanReadBilling
from billing.serializers.billing import QueueQuerySerializer
from billing.services.queue import get_visits_ready_for_billing, search


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadBilling])
def billing_queue(request):
    """Visits waiting at the cashier, oldest locked record first.  ``?q=`` narrows the list."""
    s = QueueQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    entries = search(get_visits_ready_for_billing(), s.validated_data.get('q'))
    return Response({'ok': True, 'data': entries, 'meta': {'total': len(entries)}})
