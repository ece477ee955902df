"""
WebSocket consumer for the live job board. Staff subscribe to every job order
(/ws/job-orders/) or to one (/ws/job-orders/<id>/); the server pushes status snapshots.
"""
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from rest_framework.authtoken.models import Token

from .models import JobOrder
from .notify import JOB_BOARD_GROUP, job_order_group, job_order_payload

logger = logging.getLogger(__name__)


@database_sync_to_async
def authenticate(token_key, job_order_id=None):
    """Resolve a DRF token to an active staff user. Returns (user, snapshot, error)."""
    token = Token.objects.select_related('user').filter(key=token_key).first()
    if token is None or not token.user.is_active:
        return None, None, 'Invalid token'
    if job_order_id is None:
        return token.user, None, None
    job = JobOrder.objects.filter(pk=job_order_id).first()
    if job is None:
        return None, None, 'Not found'
    return token.user, job_order_payload(job), None


class JobBoardConsumer(AsyncJsonWebsocketConsumer):
    """URL: /ws/job-orders/[<job_order_id>/]?token=..."""

    async def connect(self):
        job_order_id = self.scope['url_route']['kwargs'].get('job_order_id')
        params = parse_qs(self.scope.get('query_string', b'').decode())
        token = (params.get('token') or [''])[0]
        if not token:
            await self.close(code=4001)
            return
        user, snapshot, err = await authenticate(
            token, int(job_order_id) if job_order_id else None
        )
        if err:
            logger.info('Job board connection refused: %s', err)
            await self.close(code=4003 if err == 'Invalid token' else 4004)
            return
        self.user = user
        self.group_name = job_order_group(job_order_id) if job_order_id else JOB_BOARD_GROUP
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        if snapshot:
            await self.send_json(snapshot)

    async def disconnect(self, close_code):
        if hasattr(self, 'group_name'):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # Listen-only; answer keepalive pings.
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    async def job_order_update(self, event):
        """Handle broadcast from notify.broadcast_job_order."""
        await self.send_json(event.get('payload', {}))
