"""
Payment history for the cashier dashboard.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.exceptions import NotFoundError
from billing.permissions import CanReadBilling
from billing.serializers.billing import TransactionQuerySerializer
from billing.services.reports import get_transaction, list_transactions, serialize_transaction


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadBilling])
def transaction_list(request):
    s = TransactionQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    rows, pagination = list_transactions(
        search=(vd.get('search') or '').strip() or None,
        payment_method=vd.get('paymentMethod'),
        visit_type=vd.get('visitType'),
        date_from=vd.get('dateFrom'),
        date_to=vd.get('dateTo'),
        page=vd['page'],
        limit=vd['limit'],
    )
    return Response({'ok': True, 'data': rows, 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadBilling])
def transaction_detail(request, payment_id: int):
    payment = get_transaction(payment_id)
    if not payment:
        raise NotFoundError('Payment not found', code='payment_not_found')
    return Response({'ok': True, 'data': serialize_transaction(payment)})
