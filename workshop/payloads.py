"""
JSON payload builders shared by the API views (snake_case keys, Decimals as strings).
"""
from .utils import iso, serialize_value


def user_to_dict(user):
    if not user:
        return None
    return {
        'id': user.id,
        'username': user.username,
        'name': str(user),
        'email': user.email or '',
        'phone': user.phone or '',
        'role': user.role,
        'is_superuser': user.is_superuser,
        'has_security_pin': user.has_security_pin,
        'two_factor_enabled': user.two_factor_enabled,
    }


def customer_to_dict(c):
    return {
        'id': c.id,
        'name': c.name,
        'email': c.email,
        'phone': c.phone,
        'address': c.address,
        'has_account': c.user_id is not None,
        'created_at': iso(c.created_at),
        'updated_at': iso(c.updated_at),
    }


def vehicle_to_dict(v):
    return {
        'id': v.id,
        'customer_id': v.customer_id,
        'customer_name': v.customer.name if v.customer_id else None,
        'make': v.make,
        'model': v.model,
        'year': v.year,
        'color': v.color,
        'plate_number': v.plate_number,
        'vin': v.vin,
        'created_at': iso(v.created_at),
    }


def part_to_dict(p, public=False):
    d = {
        'id': p.id,
        'part_number': p.part_number,
        'name': p.name,
        'description': p.description,
        'quantity': p.quantity,
        'selling_price': str(p.selling_price),
    }
    if public:
        return d
    d.update({
        'supplier': p.supplier,
        'min_threshold': p.min_threshold,
        'buying_price': str(p.buying_price),
        'is_public': p.is_public,
        'low_stock': p.is_low_stock,
        'created_at': iso(p.created_at),
        'updated_at': iso(p.updated_at),
    })
    return d


def stock_log_to_dict(log):
    return {
        'id': log.id,
        'part_id': log.part_id,
        'reason': log.reason,
        'delta': log.delta,
        'quantity_after': log.quantity_after,
        'note': log.note,
        'actor_id': log.actor_id,
        'job_order_id': log.job_order_id,
        'online_order_id': log.online_order_id,
        'created_at': iso(log.created_at),
    }


def job_order_part_to_dict(line):
    return {
        'id': line.id,
        'part_id': line.part_id,
        'part_number': line.part.part_number,
        'part_name': line.part.name,
        'quantity': line.quantity,
        'unit_price': str(line.unit_price),
        'line_total': str(line.line_total),
        'created_at': iso(line.created_at),
    }


def job_order_to_dict(j, include_parts=False):
    """Snapshot with resolved customer, vehicle and mechanic names."""
    d = {
        'id': j.id,
        'job_number': j.job_number,
        'customer_id': j.customer_id,
        'customer_name': j.customer.name,
        'vehicle_id': j.vehicle_id,
        'plate_number': j.vehicle.plate_number,
        'make': j.vehicle.make,
        'model': j.vehicle.model,
        'mechanic_id': j.mechanic_id,
        'mechanic_name': str(j.mechanic) if j.mechanic_id else None,
        'complaint': j.complaint,
        'notes': j.notes,
        'estimated_cost': str(j.estimated_cost),
        'estimated_time': j.estimated_time,
        'priority': j.priority,
        'status': j.status,
        'is_archived': j.is_archived,
        'invoice_id': j.invoice_id,
        'created_at': iso(j.created_at),
        'updated_at': iso(j.updated_at),
    }
    if include_parts:
        d['parts'] = [job_order_part_to_dict(line) for line in j.parts.select_related('part')]
    return d


def invoice_line_to_dict(line):
    return {
        'id': line.id,
        'part_id': line.part_id,
        'part_number': line.part_number,
        'part_name': line.part_name,
        'quantity': line.quantity,
        'unit_price': str(line.unit_price),
        'line_total': str(line.line_total),
    }


def payment_to_dict(p):
    return {
        'id': p.id,
        'invoice_id': p.invoice_id,
        'amount': str(p.amount),
        'method': p.method,
        'reference_number': p.reference_number,
        'received_by_id': p.received_by_id,
        'created_at': iso(p.created_at),
    }


def invoice_to_dict(inv, detail=False):
    d = {
        'id': inv.id,
        'invoice_number': inv.invoice_number,
        'job_order_id': inv.job_order_id,
        'job_number': inv.job_number,
        'customer_id': inv.customer_id,
        'customer_name': inv.customer_name,
        'customer_email': inv.customer_email,
        'customer_phone': inv.customer_phone,
        'plate_number': inv.plate_number,
        'vehicle_description': inv.vehicle_description,
        'labor_cost': str(inv.labor_cost),
        'sub_total': str(inv.sub_total),
        'discount': str(inv.discount),
        'tax': str(inv.tax),
        'total_amount': str(inv.total_amount),
        'amount_paid': str(inv.amount_paid),
        'balance': str(inv.balance),
        'status': inv.status,
        'created_at': iso(inv.created_at),
        'updated_at': iso(inv.updated_at),
    }
    if detail:
        d['lines'] = [invoice_line_to_dict(line) for line in inv.lines.all()]
        d['payments'] = [payment_to_dict(p) for p in inv.payments.all()]
    return d


def online_order_to_dict(o, detail=True):
    d = {
        'id': o.id,
        'order_number': o.order_number,
        'customer_name': o.customer_name,
        'email': o.email,
        'phone': o.phone,
        'payment_method': o.payment_method,
        'payment_reference': o.payment_reference,
        'delivery_method': o.delivery_method,
        'shipping_address': o.shipping_address,
        'shipping_city': o.shipping_city,
        'shipping_postal_code': o.shipping_postal_code,
        'items_total': str(o.items_total),
        'shipping_fee': str(o.shipping_fee),
        'total_amount': str(o.total_amount),
        'status': o.status,
        'is_archived': o.is_archived,
        'tracking_number': o.tracking_number,
        'courier_name': o.courier_name,
        'payment_confirmed_at': iso(o.payment_confirmed_at),
        'cancel_reason': o.cancel_reason,
        'created_at': iso(o.created_at),
        'updated_at': iso(o.updated_at),
    }
    if detail:
        d['items'] = [
            {
                'part_id': i.part_id,
                'part_number': i.part_number,
                'part_name': i.part_name,
                'price': str(i.price),
                'qty': i.qty,
                'line_total': str(i.line_total),
            }
            for i in o.items.all()
        ]
    return d


def payout_to_dict(p):
    return {
        'id': p.id,
        'amount': str(p.amount),
        'method': p.method,
        'account_name': p.account_name,
        'account_number': p.account_number,
        'processed_by': str(p.processed_by) if p.processed_by_id else None,
        'balance_version': p.balance_version,
        'status': 'COMPLETED',
        'created_at': iso(p.created_at),
    }


def booking_to_dict(b):
    return {
        'id': b.id,
        'booking_ref': b.booking_ref,
        'customer_name': b.customer_name,
        'email': b.email,
        'phone': b.phone,
        'date': iso(b.date),
        'service_type': b.service_type,
        'notes': b.notes,
        'status': b.status,
        'job_order_id': b.job_order_id,
        'created_at': iso(b.created_at),
    }


def inquiry_to_dict(q):
    return {
        'id': q.id,
        'customer_name': q.customer_name,
        'email': q.email,
        'phone': q.phone,
        'message': q.message,
        'part_id': q.part_id,
        'part_name': q.part_name,
        'part_number': q.part.part_number if q.part_id else None,
        'part_price': serialize_value(q.part.selling_price) if q.part_id else None,
        'status': q.status,
        'created_at': iso(q.created_at),
    }


def activity_to_dict(a):
    return {
        'id': a.id,
        'user': str(a.user) if a.user_id else None,
        'action': a.action,
        'entity': a.entity,
        'entity_id': a.entity_id,
        'details': a.details,
        'created_at': iso(a.created_at),
    }


def wallet_to_dict(summary):
    d = {k: serialize_value(v) for k, v in summary.items() if k != 'recent_payouts'}
    d['recent_payouts'] = [payout_to_dict(p) for p in summary.get('recent_payouts', [])]
    return d
