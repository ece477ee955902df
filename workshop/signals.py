"""
Model hooks: push job order changes to the live job board once the
transaction that saved them commits.
"""
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import JobOrder
from .notify import broadcast_job_order

BROADCAST_FIELDS = {'status', 'mechanic', 'is_archived'}


@receiver(post_save, sender=JobOrder)
def on_job_order_save(sender, instance, created, update_fields=None, **kwargs):
    if not created and update_fields is not None and not BROADCAST_FIELDS & set(update_fields):
        return
    transaction.on_commit(lambda: broadcast_job_order(instance))
