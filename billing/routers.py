"""
URL mappings for the clinic billing API.

Trailing slashes are omitted to match the front-end endpoint table
(``APPEND_SLASH`` is off).
"""
from django.urls import path, include

from .auth_views import login_view
from .views import health
from .views.billing import add_billing_item, billing_detail, billing_stats, calculate_billing, create_payment
from .views.inpatient import assign_bed_view, release_bed_view
from .views.medical_records import lock_record, unlock_record
from .views.queue import billing_queue
from .views.transactions import transaction_detail, transaction_list


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    # Billing
    path('api/billing/payment', create_payment, name='billing_payment'),
    path('api/billing/queue', billing_queue, name='billing_queue'),
    path('api/billing/stats', billing_stats, name='billing_stats'),
    path('api/billing/transactions', transaction_list, name='billing_transactions'),
    path('api/billing/transactions/<int:payment_id>', transaction_detail, name='billing_transaction_detail'),
    path('api/billing/<int:visit_id>', billing_detail, name='billing_detail'),
    path('api/billing/<int:visit_id>/calculate', calculate_billing, name='billing_calculate'),
    path('api/billing/<int:visit_id>/items', add_billing_item, name='billing_items'),
    # Medical records
    path('api/medical-records/lock', lock_record, name='record_lock'),
    path('api/medical-records/unlock', unlock_record, name='record_unlock'),
    # Inpatient beds
    path('api/inpatient/assign-bed', assign_bed_view, name='assign_bed'),
    path('api/inpatient/release-bed', release_bed_view, name='release_bed'),
]
