"""
Outbound notifications.
Email/SMS delivery is handled outside this service, so events are only logged here.
Job order status changes are also pushed to websocket groups for the live job board.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

JOB_BOARD_GROUP = 'job_board'

STATUS_LABELS = {
    'RECEIVED': 'Vehicle received',
    'DIAGNOSING': 'Diagnosis in progress',
    'IN_PROGRESS': 'Repair in progress',
    'WAITING_FOR_PARTS': 'Waiting for parts',
    'COMPLETED': 'Repair completed',
    'RELEASED': 'Vehicle released',
}


def job_order_group(job_order_id):
    return f'job_order_{job_order_id}'


def notify_event(event, **data):
    """Record a notification event (INVOICE_GENERATED, PAYMENT_RECEIVED, ...)."""
    logger.info('notify %s %s', event, data)


def job_order_payload(job_order):
    return {
        'id': job_order.pk,
        'job_number': job_order.job_number,
        'status': job_order.status,
        'label': STATUS_LABELS.get(job_order.status, job_order.status),
        'is_archived': job_order.is_archived,
        'updated_at': job_order.updated_at.isoformat() if job_order.updated_at else None,
    }


def broadcast_job_order(job_order):
    """
    Push the job order snapshot to the board group and its own group.
    Best effort: a missing or failing channel layer is logged and ignored.
    """
    layer = get_channel_layer()
    if layer is None:
        return
    message = {'type': 'job_order.update', 'payload': job_order_payload(job_order)}
    try:
        async_to_sync(layer.group_send)(JOB_BOARD_GROUP, message)
        async_to_sync(layer.group_send)(job_order_group(job_order.pk), message)
    except Exception:
        logger.exception('Job order broadcast failed for %s', job_order.pk)
