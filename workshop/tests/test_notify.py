from asgiref.sync import async_to_sync, sync_to_async
from channels.layers import get_channel_layer
from django.test import TestCase

from workshop.notify import JOB_BOARD_GROUP, broadcast_job_order, job_order_group

from .base import WorkshopFixtures


class JobBoardBroadcastTests(WorkshopFixtures, TestCase):
    def test_broadcast_reaches_board_and_job_groups(self):
        job = self.make_job_order()

        async def listen():
            layer = get_channel_layer()
            board = await layer.new_channel()
            single = await layer.new_channel()
            await layer.group_add(JOB_BOARD_GROUP, board)
            await layer.group_add(job_order_group(job.pk), single)
            await sync_to_async(broadcast_job_order)(job)
            return [await layer.receive(board), await layer.receive(single)]

        for message in async_to_sync(listen)():
            self.assertEqual(message['type'], 'job_order.update')
            self.assertEqual(message['payload']['job_number'], job.job_number)
            self.assertEqual(message['payload']['label'], 'Vehicle received')
