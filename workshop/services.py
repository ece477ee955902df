"""
Reusable business logic for the inventory ledger, job orders, billing, invoices,
payments, online orders and bookings.
Views call these so stock and money rules stay in one place; every mutating
function returns the authoritative post-state.
"""
import logging
import secrets
from collections import OrderedDict
from datetime import datetime, time
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Case, F, Q, Sum, Value, When
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import (
    AlreadyInvoiced,
    InsufficientStock,
    InvalidTransition,
    NotFound,
    OverPayment,
    PartInUse,
    ValidationError,
)
from .models import (
    ActivityLog,
    Appointment,
    BookingStatus,
    Customer,
    DeliveryMethod,
    Inquiry,
    InquiryStatus,
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    JobOrder,
    JobOrderPart,
    JobOrderStatus,
    OnlineOrder,
    OnlineOrderItem,
    OnlineOrderRefund,
    OnlineOrderStatus,
    OnlinePaymentMethod,
    Part,
    PaymentMethod,
    Payment,
    Priority,
    Role,
    StockLog,
    StockReason,
    User,
    Vehicle,
)
from .notify import notify_event
from .validators import is_valid_card_number, is_valid_gcash_number, mask_number

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
# Money columns are max_digits=12, decimal_places=2.
MAX_AMOUNT = Decimal('10') ** 10
ZERO = Decimal('0.00')

STOCK_ADD = 'ADD'
STOCK_DEDUCT = 'DEDUCT'

HOME_SERVICE = 'Home Service'


# --- Input coercion ---

def to_decimal(value, field):
    """Parse a money amount. More than two decimal places is rejected rather than rounded."""
    if value is None or value == '' or isinstance(value, bool):
        raise ValidationError(f'{field} is required')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number')
    if not amount.is_finite():
        raise ValidationError(f'{field} must be a number')
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f'{field} is too large')
    try:
        rounded = amount.quantize(TWO_PLACES)
    except InvalidOperation:
        raise ValidationError(f'{field} must be a number')
    if amount != rounded:
        raise ValidationError(f'{field} has more than two decimal places')
    return rounded


def to_int(value, field, minimum=0):
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a whole number')
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a whole number')
    if number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    return number


def to_positive_int(value, field):
    return to_int(value, field, minimum=1)


def _clean(value):
    return str(value or '').strip()


def _unique_number(prefix, model, field, hex_suffix=False):
    """PREFIX-XXXXXX, retried until it does not collide with an existing row."""
    while True:
        suffix = secrets.token_hex(3).upper() if hex_suffix else f'{secrets.randbelow(10 ** 6):06d}'
        number = f'{prefix}-{suffix}'
        if not model.objects.filter(**{field: number}).exists():
            return number


def _actor(user):
    return user if getattr(user, 'is_authenticated', False) else None


# --- Activity log ---

def log_activity(user, action, entity, entity_id=None, details=''):
    """Append an audit row. user may be None or anonymous for public actions."""
    return ActivityLog.objects.create(
        user=_actor(user),
        action=action,
        entity=entity,
        entity_id='' if entity_id is None else str(entity_id),
        details=details or '',
    )


# --- Customers and vehicles ---

CUSTOMER_FIELDS = ('name', 'email', 'phone', 'address')


def create_customer(data, actor=None):
    name = _clean(data.get('name'))
    if not name:
        raise ValidationError('name required')
    customer = Customer.objects.create(
        name=name,
        email=_clean(data.get('email')),
        phone=_clean(data.get('phone')),
        address=_clean(data.get('address')),
    )
    log_activity(actor, 'CREATE_CUSTOMER', 'Customer', customer.pk, customer.name)
    return customer


def update_customer(customer, data, actor=None):
    changed = []
    for field in CUSTOMER_FIELDS:
        if field in data:
            value = _clean(data[field])
            if field == 'name' and not value:
                raise ValidationError('name cannot be blank')
            setattr(customer, field, value)
            changed.append(field)
    if changed:
        customer.save(update_fields=changed + ['updated_at'])
        log_activity(actor, 'UPDATE_CUSTOMER', 'Customer', customer.pk, ', '.join(changed))
    return customer


def _check_vehicle_identifiers(plate_number, vin, exclude_pk=None):
    qs = Vehicle.objects.all()
    if exclude_pk:
        qs = qs.exclude(pk=exclude_pk)
    if plate_number and qs.filter(plate_number__iexact=plate_number).exists():
        raise ValidationError('A vehicle with this plate number already exists')
    if vin and qs.filter(vin__iexact=vin).exists():
        raise ValidationError('A vehicle with this VIN already exists')


def create_vehicle(customer, data, actor=None):
    plate_number = _clean(data.get('plate_number')).upper()
    make = _clean(data.get('make'))
    model = _clean(data.get('model'))
    if not plate_number or not make or not model:
        raise ValidationError('plate_number, make and model required')
    vin = _clean(data.get('vin')).upper()
    _check_vehicle_identifiers(plate_number, vin)
    year = data.get('year')
    vehicle = Vehicle.objects.create(
        customer=customer,
        make=make,
        model=model,
        year=to_int(year, 'year', minimum=1900) if year not in (None, '') else None,
        color=_clean(data.get('color')),
        plate_number=plate_number,
        vin=vin,
    )
    log_activity(actor, 'CREATE_VEHICLE', 'Vehicle', vehicle.pk, plate_number)
    return vehicle


def update_vehicle(vehicle, data, actor=None):
    """Edit vehicle details. Passing customer_id transfers ownership."""
    changed = []
    if 'plate_number' in data or 'vin' in data:
        plate_number = _clean(data.get('plate_number', vehicle.plate_number)).upper()
        vin = _clean(data.get('vin', vehicle.vin)).upper()
        if not plate_number:
            raise ValidationError('plate_number cannot be blank')
        _check_vehicle_identifiers(plate_number, vin, exclude_pk=vehicle.pk)
        vehicle.plate_number, vehicle.vin = plate_number, vin
        changed += ['plate_number', 'vin']
    for field in ('make', 'model', 'color'):
        if field in data:
            setattr(vehicle, field, _clean(data[field]))
            changed.append(field)
    if 'year' in data:
        year = data['year']
        vehicle.year = to_int(year, 'year', minimum=1900) if year not in (None, '') else None
        changed.append('year')
    if 'customer_id' in data:
        owner = Customer.objects.filter(pk=data['customer_id']).first()
        if owner is None:
            raise NotFound('Customer not found')
        vehicle.customer = owner
        changed.append('customer')
    if changed:
        vehicle.save(update_fields=changed + ['updated_at'])
        log_activity(actor, 'UPDATE_VEHICLE', 'Vehicle', vehicle.pk, ', '.join(changed))
    return vehicle


# --- Customer accounts ---

def register_customer(data):
    """Self-registration: a CUSTOMER login and its Customer record, created together."""
    username = _clean(data.get('username'))
    password = data.get('password') or ''
    name = _clean(data.get('name'))
    if not username or not password or not name:
        raise ValidationError('username, password and name required')
    if len(password) < 8:
        raise ValidationError('password must be at least 8 characters')
    email = _clean(data.get('email')) or (username if '@' in username else '')
    phone = _clean(data.get('phone'))
    if User.objects.filter(username__iexact=username).exists():
        raise ValidationError('Username already exists')
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username,
                password=password,
                email=email,
                name=name,
                phone=phone,
                role=Role.CUSTOMER,
            )
            customer = Customer.objects.create(user=user, name=name, email=email, phone=phone)
    except IntegrityError:
        raise ValidationError('Username already exists')
    log_activity(user, 'REGISTER', 'Customer', customer.pk, username)
    return user, customer


def customer_for_user(user):
    """The caller's Customer record; accounts created before their profile get one on first use."""
    customer, created = Customer.objects.get_or_create(
        user=user,
        defaults={'name': user.name or user.username, 'email': user.email, 'phone': user.phone},
    )
    if created:
        logger.info('Created missing customer profile for user %s', user.pk)
    return customer


def owned_vehicle(customer, vehicle_id):
    vehicle = Vehicle.objects.filter(pk=to_positive_int(vehicle_id, 'vehicle_id'), customer=customer).first()
    if vehicle is None:
        raise NotFound('Vehicle not found')
    return vehicle


def update_own_vehicle(customer, vehicle_id, data, actor=None):
    """Customers edit their vehicle details but cannot hand the vehicle to someone else."""
    vehicle = owned_vehicle(customer, vehicle_id)
    data = {k: v for k, v in data.items() if k != 'customer_id'}
    return update_vehicle(vehicle, data, actor=actor)


# --- Inventory ledger ---

def _change_stock(part, delta, reason, actor=None, note='', job_order=None, online_order=None):
    """
    Apply a signed stock change and write its StockLog. Deductions use a conditional
    UPDATE so quantity never drops below zero, even under concurrent writers.
    Must run inside a transaction.
    """
    qs = Part.objects.filter(pk=part.pk)
    now = timezone.now()
    if delta >= 0:
        updated = qs.update(quantity=F('quantity') + delta, updated_at=now)
    else:
        updated = qs.filter(quantity__gte=-delta).update(quantity=F('quantity') + delta, updated_at=now)
    current = qs.values_list('quantity', flat=True).first()
    if current is None:
        raise NotFound('Part not found')
    if not updated:
        raise InsufficientStock(
            f'Insufficient stock for {part.name}: {current} available, {-delta} requested'
        )
    part.quantity = current
    part.updated_at = now
    return StockLog.objects.create(
        part=part,
        reason=reason,
        delta=delta,
        quantity_after=current,
        note=note or '',
        actor=_actor(actor),
        job_order=job_order,
        online_order=online_order,
    )


def adjust_stock(part, action, quantity, note='', actor=None):
    """Manual ADD or DEDUCT. DEDUCT raises InsufficientStock rather than going negative."""
    qty = to_positive_int(quantity, 'quantity')
    action = _clean(action).upper()
    if action == STOCK_ADD:
        delta, reason = qty, StockReason.MANUAL_ADD
    elif action == STOCK_DEDUCT:
        delta, reason = -qty, StockReason.MANUAL_DEDUCT
    else:
        raise ValidationError('action must be ADD or DEDUCT')
    with transaction.atomic():
        log = _change_stock(part, delta, reason, actor=actor, note=note)
    log_activity(actor, f'STOCK_{action}', 'Part', part.pk, f'{qty} ({part.part_number})')
    return log


PART_TEXT_FIELDS = ('name', 'description', 'supplier')
PART_PRICE_FIELDS = ('buying_price', 'selling_price')


def create_part(data, actor=None):
    part_number = _clean(data.get('part_number'))
    name = _clean(data.get('name'))
    if not part_number or not name:
        raise ValidationError('part_number and name required')
    if Part.objects.filter(part_number__iexact=part_number).exists():
        raise ValidationError('Part Number already exists')
    quantity = to_int(data.get('quantity', 0) or 0, 'quantity')
    min_threshold = data.get('min_threshold')
    with transaction.atomic():
        part = Part.objects.create(
            part_number=part_number,
            name=name,
            description=_clean(data.get('description')),
            supplier=_clean(data.get('supplier')),
            quantity=quantity,
            min_threshold=to_int(min_threshold, 'min_threshold') if min_threshold not in (None, '') else 5,
            buying_price=to_decimal(data.get('buying_price', 0) or 0, 'buying_price'),
            selling_price=to_decimal(data.get('selling_price', 0) or 0, 'selling_price'),
            is_public=bool(data.get('is_public', True)),
        )
        if quantity:
            StockLog.objects.create(
                part=part,
                reason=StockReason.INITIAL,
                delta=quantity,
                quantity_after=quantity,
                actor=_actor(actor),
            )
    log_activity(actor, 'CREATE_PART', 'Part', part.pk, part.part_number)
    return part


def update_part(part, data, actor=None):
    """Catalogue edits. Quantity is owned by the ledger and cannot be set here."""
    if 'quantity' in data:
        raise ValidationError('Quantity changes must go through stock adjustments')
    changed = []
    if 'part_number' in data:
        part_number = _clean(data['part_number'])
        if not part_number:
            raise ValidationError('part_number cannot be blank')
        if Part.objects.filter(part_number__iexact=part_number).exclude(pk=part.pk).exists():
            raise ValidationError('Part Number already exists')
        part.part_number = part_number
        changed.append('part_number')
    for field in PART_TEXT_FIELDS:
        if field in data:
            setattr(part, field, _clean(data[field]))
            changed.append(field)
    for field in PART_PRICE_FIELDS:
        if field in data:
            price = to_decimal(data[field], field)
            if price < 0:
                raise ValidationError(f'{field} must not be negative')
            setattr(part, field, price)
            changed.append(field)
    if 'min_threshold' in data:
        part.min_threshold = to_int(data['min_threshold'], 'min_threshold')
        changed.append('min_threshold')
    if 'is_public' in data:
        part.is_public = bool(data['is_public'])
        changed.append('is_public')
    if changed:
        part.save(update_fields=changed + ['updated_at'])
        log_activity(actor, 'UPDATE_PART', 'Part', part.pk, ', '.join(changed))
    return part


def delete_part(part, actor=None):
    if part.job_order_lines.exists() or part.invoice_lines.exists():
        raise PartInUse(f'{part.part_number} is referenced by job orders or invoices')
    pk, part_number = part.pk, part.part_number
    part.delete()
    log_activity(actor, 'DELETE_PART', 'Part', pk, part_number)


def low_stock_parts():
    return Part.objects.filter(quantity__lte=F('min_threshold')).order_by('quantity', 'name')


def public_parts():
    return Part.objects.filter(is_public=True, quantity__gt=0).order_by('name')


# --- Job orders ---

def _validate_choice(value, choices, field):
    value = _clean(value).upper()
    if value not in choices.values:
        raise ValidationError(f'Invalid {field}: {value or "(blank)"}')
    return value


def _validate_mechanic(mechanic):
    if mechanic is not None and mechanic.role != Role.MECHANIC:
        raise ValidationError('Assigned user is not a mechanic')
    return mechanic


def create_job_order(customer, vehicle, complaint, estimated_cost=0, estimated_time='',
                     priority=Priority.NORMAL, notes='', mechanic=None, actor=None):
    if vehicle.customer_id != customer.pk:
        raise ValidationError('Vehicle does not belong to this customer')
    complaint = _clean(complaint)
    if not complaint:
        raise ValidationError('complaint required')
    cost = to_decimal(estimated_cost or 0, 'estimated_cost')
    if cost < 0:
        raise ValidationError('estimated_cost must not be negative')
    job = JobOrder.objects.create(
        job_number=_unique_number('JO', JobOrder, 'job_number'),
        customer=customer,
        vehicle=vehicle,
        mechanic=_validate_mechanic(mechanic),
        complaint=complaint,
        notes=_clean(notes),
        estimated_cost=cost,
        estimated_time=_clean(estimated_time),
        priority=_validate_choice(priority or Priority.NORMAL, Priority, 'priority'),
        created_by=_actor(actor),
    )
    log_activity(actor, 'CREATE_JOB_ORDER', 'JobOrder', job.pk, job.job_number)
    return job


def _lock_job_order(job_order_id):
    job = JobOrder.objects.select_for_update().filter(pk=job_order_id).first()
    if job is None:
        raise NotFound('Job order not found')
    return job


def transition_job_order(job_order, new_status, actor=None):
    """
    Move a job order to any status except out of RELEASED.
    Last write wins; the returned instance is the stored state.
    """
    new_status = _validate_choice(new_status, JobOrderStatus, 'status')
    with transaction.atomic():
        job = _lock_job_order(job_order.pk)
        if job.is_archived:
            raise InvalidTransition('Archived job orders cannot change status')
        if job.status == new_status:
            return job
        if job.status == JobOrderStatus.RELEASED:
            raise InvalidTransition('Released job orders are closed')
        previous = job.status
        job.status = new_status
        job.save(update_fields=['status', 'updated_at'])
        log_activity(actor, 'UPDATE_STATUS', 'JobOrder', job.pk, f'{previous} -> {new_status}')
    return job


def set_job_order_archived(job_order, archived, actor=None):
    with transaction.atomic():
        job = _lock_job_order(job_order.pk)
        job.is_archived = bool(archived)
        job.save(update_fields=['is_archived', 'updated_at'])
        log_activity(actor, 'ARCHIVE' if archived else 'RESTORE', 'JobOrder', job.pk, job.job_number)
    return job


def assign_mechanic(job_order, mechanic, actor=None):
    _validate_mechanic(mechanic)
    with transaction.atomic():
        job = _lock_job_order(job_order.pk)
        job.mechanic = mechanic
        job.save(update_fields=['mechanic', 'updated_at'])
        log_activity(
            actor, 'ASSIGN_MECHANIC', 'JobOrder', job.pk,
            f'Assigned to {mechanic}' if mechanic else 'Unassigned',
        )
    return job


def update_job_order(job_order, data, actor=None):
    with transaction.atomic():
        job = _lock_job_order(job_order.pk)
        changed = []
        for field in ('complaint', 'notes', 'estimated_time'):
            if field in data:
                setattr(job, field, _clean(data[field]))
                changed.append(field)
        if 'complaint' in changed and not job.complaint:
            raise ValidationError('complaint cannot be blank')
        if 'priority' in data:
            job.priority = _validate_choice(data['priority'], Priority, 'priority')
            changed.append('priority')
        if 'estimated_cost' in data:
            if Invoice.objects.filter(job_order=job).exists():
                raise AlreadyInvoiced('Labor cost is frozen once the job order is invoiced')
            cost = to_decimal(data['estimated_cost'], 'estimated_cost')
            if cost < 0:
                raise ValidationError('estimated_cost must not be negative')
            job.estimated_cost = cost
            changed.append('estimated_cost')
        if changed:
            job.save(update_fields=changed + ['updated_at'])
            log_activity(actor, 'UPDATE_JOB_ORDER', 'JobOrder', job.pk, ', '.join(changed))
    return job


# --- Billing ---

def _lock_open_job_order(job_order_id):
    job = _lock_job_order(job_order_id)
    if Invoice.objects.filter(job_order_id=job.pk).exists():
        raise AlreadyInvoiced(f'{job.job_number} is already invoiced')
    return job


def add_part(job_order, part, quantity, actor=None):
    """Deduct stock and attach a part line priced at the current selling price."""
    qty = to_positive_int(quantity, 'quantity')
    with transaction.atomic():
        job = _lock_open_job_order(job_order.pk)
        part = Part.objects.filter(pk=part.pk).first()
        if part is None:
            raise NotFound('Part not found')
        _change_stock(part, -qty, StockReason.JOB_ORDER, actor=actor, job_order=job)
        line = JobOrderPart.objects.create(
            job_order=job,
            part=part,
            quantity=qty,
            unit_price=part.selling_price,
        )
    log_activity(actor, 'ADD_PART', 'JobOrder', job.pk, f'{part.part_number} x{qty}')
    return line


def remove_part(job_order, line_id, actor=None):
    """Detach a part line before invoicing and return its quantity to stock."""
    with transaction.atomic():
        job = _lock_open_job_order(job_order.pk)
        line = JobOrderPart.objects.select_related('part').filter(pk=line_id, job_order=job).first()
        if line is None:
            raise NotFound('Part line not found')
        _change_stock(line.part, line.quantity, StockReason.JOB_ORDER_RETURN, actor=actor, job_order=job)
        line.delete()
    log_activity(actor, 'REMOVE_PART', 'JobOrder', job.pk, f'{line.part.part_number} x{line.quantity}')
    return job


def _subtotal(labor, lines):
    parts_total = sum((line.unit_price * line.quantity for line in lines), ZERO)
    return (labor + parts_total).quantize(TWO_PLACES)


def compute_subtotal(job_order):
    """estimated_cost + sum(unit_price * quantity) over the attached part lines."""
    return _subtotal(job_order.estimated_cost, job_order.parts.all())


def draft_bill(job_order):
    lines = list(job_order.parts.select_related('part'))
    parts_total = sum((line.line_total for line in lines), ZERO)
    return {
        'job_order_id': job_order.pk,
        'labor_cost': job_order.estimated_cost,
        'parts_total': parts_total,
        'sub_total': _subtotal(job_order.estimated_cost, lines),
        'lines': lines,
    }


def invoice_status_for(amount_paid, total_amount):
    if amount_paid >= total_amount:
        return InvoiceStatus.PAID
    if amount_paid > 0:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.UNPAID


def create_invoice(job_order, discount=0, tax=0, actor=None):
    """
    Freeze the draft bill into an invoice: total = subtotal - discount + tax.
    A discount that would make the total negative is rejected or clamped per
    INVOICE_NEGATIVE_TOTAL_POLICY.
    """
    discount = to_decimal(discount or 0, 'discount')
    tax = to_decimal(tax or 0, 'tax')
    if discount < 0 or tax < 0:
        raise ValidationError('discount and tax must not be negative')
    try:
        with transaction.atomic():
            job = _lock_open_job_order(job_order.pk)
            job = JobOrder.objects.select_related('customer', 'vehicle').get(pk=job.pk)
            lines = list(job.parts.select_related('part'))
            sub_total = _subtotal(job.estimated_cost, lines)
            total = sub_total - discount + tax
            if sub_total >= MAX_AMOUNT or total >= MAX_AMOUNT:
                raise ValidationError('Bill total is too large')
            if total < 0:
                if getattr(settings, 'INVOICE_NEGATIVE_TOTAL_POLICY', 'reject') == 'clamp':
                    total = ZERO
                else:
                    raise ValidationError(
                        f'Discount {discount} exceeds the bill ({sub_total + tax})'
                    )
            customer, vehicle = job.customer, job.vehicle
            invoice = Invoice.objects.create(
                invoice_number=_unique_number('INV', Invoice, 'invoice_number'),
                job_order=job,
                customer=customer,
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                plate_number=vehicle.plate_number,
                vehicle_description=vehicle.description,
                job_number=job.job_number,
                labor_cost=job.estimated_cost,
                sub_total=sub_total,
                discount=discount,
                tax=tax,
                total_amount=total,
                status=invoice_status_for(ZERO, total),
                created_by=_actor(actor),
            )
            InvoiceLine.objects.bulk_create([
                InvoiceLine(
                    invoice=invoice,
                    part=line.part,
                    part_number=line.part.part_number,
                    part_name=line.part.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in lines
            ])
    except IntegrityError:
        if not Invoice.objects.filter(job_order_id=job_order.pk).exists():
            raise
        raise AlreadyInvoiced(f'{job_order.job_number} is already invoiced')
    log_activity(actor, 'CREATE_INVOICE', 'Invoice', invoice.pk, f'{invoice.invoice_number} {total}')
    notify_event('INVOICE_GENERATED', invoice_id=invoice.pk, total=str(total))
    return invoice


# --- Payments ---

def record_payment(invoice, amount, method, reference_number='', actor=None):
    """
    Append a payment and recompute the invoice status.
    Returns (payment, invoice). The paid sum never exceeds the invoice total.
    """
    amount = to_decimal(amount, 'amount')
    if amount <= 0:
        raise ValidationError('Payment amount must be greater than zero')
    method = _validate_choice(method, PaymentMethod, 'payment method')
    with transaction.atomic():
        inv = Invoice.objects.select_for_update().filter(pk=invoice.pk).first()
        if inv is None:
            raise NotFound('Invoice not found')
        paid = inv.payments.aggregate(total=Sum('amount'))['total'] or ZERO
        remaining = inv.total_amount - paid
        if amount > remaining:
            raise OverPayment(f'Overpayment detected. Remaining balance is {remaining}')
        payment = Payment.objects.create(
            invoice=inv,
            amount=amount,
            method=method,
            reference_number=_clean(reference_number),
            received_by=_actor(actor),
        )
        inv.amount_paid = paid + amount
        inv.status = invoice_status_for(inv.amount_paid, inv.total_amount)
        inv.save(update_fields=['amount_paid', 'status', 'updated_at'])
    log_activity(actor, 'RECORD_PAYMENT', 'Invoice', inv.pk, f'{amount} via {method}')
    notify_event('PAYMENT_RECEIVED', invoice_id=inv.pk, amount=str(amount), status=inv.status)
    return payment, inv


# --- Online orders ---

def shipping_fee_for(delivery_method, items_total):
    if delivery_method != DeliveryMethod.DELIVERY:
        return ZERO
    if items_total >= settings.SHIPPING_FREE_THRESHOLD:
        return ZERO
    return Decimal(settings.SHIPPING_FLAT_RATE).quantize(TWO_PLACES)


def _payment_reference(payment_method, data):
    if payment_method == OnlinePaymentMethod.CARD:
        number = data.get('card_number')
        if not is_valid_card_number(number):
            raise ValidationError('Invalid card number')
        return mask_number(number)
    if payment_method == OnlinePaymentMethod.GCASH:
        number = data.get('gcash_number')
        if not is_valid_gcash_number(number):
            raise ValidationError('Invalid GCash number')
        return mask_number(number)
    return ''


def place_order(data):
    """Public checkout: snapshot item prices, deduct stock and compute shipping."""
    customer_name = _clean(data.get('customer_name'))
    email = _clean(data.get('email'))
    items = data.get('items') or []
    if not customer_name or not email or not items:
        raise ValidationError('customer_name, email and items required')
    if not isinstance(items, list):
        raise ValidationError('items must be a list')
    payment_method = _validate_choice(data.get('payment_method') or 'CASH', OnlinePaymentMethod, 'payment method')
    delivery_method = _validate_choice(data.get('delivery_method') or 'PICKUP', DeliveryMethod, 'delivery method')
    shipping_address = _clean(data.get('shipping_address'))
    if delivery_method == DeliveryMethod.DELIVERY and not shipping_address:
        raise ValidationError('shipping_address required for delivery')
    payment_reference = _payment_reference(payment_method, data)

    requested = OrderedDict()
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError('Each item needs part_id and qty')
        part_id = to_positive_int(item.get('part_id'), 'part_id')
        qty = to_positive_int(item.get('qty', item.get('quantity')), 'qty')
        requested[part_id] = requested.get(part_id, 0) + qty

    with transaction.atomic():
        parts = Part.objects.in_bulk(list(requested))
        order = OnlineOrder.objects.create(
            order_number=_unique_number('ORD', OnlineOrder, 'order_number'),
            customer_name=customer_name,
            email=email,
            phone=_clean(data.get('phone')),
            payment_method=payment_method,
            payment_reference=payment_reference,
            delivery_method=delivery_method,
            shipping_address=shipping_address,
            shipping_city=_clean(data.get('shipping_city')),
            shipping_postal_code=_clean(data.get('shipping_postal_code')),
            notes=_clean(data.get('notes')),
        )
        items_total = ZERO
        for part_id, qty in requested.items():
            part = parts.get(part_id)
            if part is None or not part.is_public:
                raise NotFound(f'Part {part_id} is not available')
            _change_stock(part, -qty, StockReason.ONLINE_ORDER, online_order=order)
            line_total = (part.selling_price * qty).quantize(TWO_PLACES)
            OnlineOrderItem.objects.create(
                order=order,
                part=part,
                part_number=part.part_number,
                part_name=part.name,
                price=part.selling_price,
                qty=qty,
                line_total=line_total,
            )
            items_total += line_total
        order.items_total = items_total
        order.shipping_fee = shipping_fee_for(delivery_method, items_total)
        order.total_amount = items_total + order.shipping_fee
        order.save(update_fields=['items_total', 'shipping_fee', 'total_amount', 'updated_at'])
    log_activity(None, 'PLACE_ORDER', 'OnlineOrder', order.pk, f'{order.order_number} {order.total_amount}')
    notify_event('ORDER_PLACED', order_id=order.pk, email=order.email)
    return order


def _lock_online_order(order_id):
    order = OnlineOrder.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found')
    return order


def confirm_payment(order, actor=None):
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        if o.status != OnlineOrderStatus.PENDING:
            raise InvalidTransition(f'Cannot confirm payment for a {o.status} order')
        o.status = OnlineOrderStatus.PROCESSING
        o.payment_confirmed_at = timezone.now()
        o.save(update_fields=['status', 'payment_confirmed_at', 'updated_at'])
        log_activity(actor, 'CONFIRM_PAYMENT', 'OnlineOrder', o.pk, o.order_number)
    notify_event('ORDER_PAYMENT_CONFIRMED', order_id=o.pk, email=o.email)
    return o


def update_tracking(order, tracking_number, courier_name, actor=None):
    """Record courier details on a delivery order. The status stays PROCESSING."""
    tracking_number = _clean(tracking_number)
    courier_name = _clean(courier_name)
    if not tracking_number or not courier_name:
        raise ValidationError('tracking_number and courier_name required')
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        if o.delivery_method != DeliveryMethod.DELIVERY:
            raise InvalidTransition('Tracking applies to delivery orders only')
        if o.status != OnlineOrderStatus.PROCESSING:
            raise InvalidTransition(f'Cannot add tracking to a {o.status} order')
        o.tracking_number = tracking_number
        o.courier_name = courier_name
        o.save(update_fields=['tracking_number', 'courier_name', 'updated_at'])
        log_activity(actor, 'UPDATE_TRACKING', 'OnlineOrder', o.pk, f'{courier_name} {tracking_number}')
    return o


def mark_shipped(order, actor=None):
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        if o.delivery_method != DeliveryMethod.DELIVERY or o.status != OnlineOrderStatus.PROCESSING:
            raise InvalidTransition('Only processing delivery orders can be shipped')
        if not o.tracking_number:
            raise InvalidTransition('Add tracking details before shipping')
        o.status = OnlineOrderStatus.SHIPPED
        o.save(update_fields=['status', 'updated_at'])
        log_activity(actor, 'SHIP_ORDER', 'OnlineOrder', o.pk, o.order_number)
    notify_event('ORDER_SHIPPED', order_id=o.pk, tracking_number=o.tracking_number)
    return o


def mark_completed(order, actor=None):
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        if o.delivery_method != DeliveryMethod.PICKUP or o.status != OnlineOrderStatus.PROCESSING:
            raise InvalidTransition('Only processing pickup orders can be completed')
        o.status = OnlineOrderStatus.COMPLETED
        o.save(update_fields=['status', 'updated_at'])
        log_activity(actor, 'COMPLETE_ORDER', 'OnlineOrder', o.pk, o.order_number)
    return o


def cancel_online_order(order, reason='', refund_reference='', actor=None):
    """
    Cancel and restock. A PROCESSING order has been paid, so it needs a refund
    reference and records an OnlineOrderRefund for the full total.
    """
    reason = _clean(reason)
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        if o.status == OnlineOrderStatus.PROCESSING:
            refund_reference = _clean(refund_reference)
            if not refund_reference:
                raise ValidationError('refund_reference required to cancel a paid order')
            OnlineOrderRefund.objects.create(
                order=o,
                amount=o.total_amount,
                reference=refund_reference,
                note=reason,
                processed_by=_actor(actor),
            )
        elif o.status != OnlineOrderStatus.PENDING:
            raise InvalidTransition(f'Cannot cancel a {o.status} order')
        for item in o.items.select_related('part'):
            if item.part is not None:
                _change_stock(item.part, item.qty, StockReason.ONLINE_ORDER_CANCEL, actor=actor, online_order=o)
        o.status = OnlineOrderStatus.CANCELLED
        o.cancel_reason = reason
        o.save(update_fields=['status', 'cancel_reason', 'updated_at'])
        log_activity(actor, 'CANCEL_ORDER', 'OnlineOrder', o.pk, reason)
    notify_event('ORDER_CANCELLED', order_id=o.pk, email=o.email)
    return o


def set_online_order_archived(order, archived, actor=None):
    with transaction.atomic():
        o = _lock_online_order(order.pk)
        o.is_archived = bool(archived)
        o.save(update_fields=['is_archived', 'updated_at'])
        log_activity(actor, 'ARCHIVE' if archived else 'RESTORE', 'OnlineOrder', o.pk, o.order_number)
    return o


def lookup_online_order(order_number, email):
    order = OnlineOrder.objects.filter(
        order_number__iexact=_clean(order_number), email__iexact=_clean(email)
    ).first()
    if order is None:
        raise NotFound('Order not found')
    return order


# --- Bookings ---

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED},
}
BOOKING_TERMINAL = (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


def _parse_booking_date(value):
    raw = _clean(value)
    try:
        day = parse_date(raw) if raw else None
        parsed = parse_datetime(raw) if raw and day is None else None
    except ValueError:
        raise ValidationError('Invalid booking date')
    if day is not None:
        if day < timezone.localdate():
            raise ValidationError('Booking date cannot be in the past')
        return timezone.make_aware(datetime.combine(day, time.min))
    if parsed is None:
        raise ValidationError('Invalid booking date')
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    if parsed < timezone.now():
        raise ValidationError('Booking date cannot be in the past')
    return parsed


def request_booking(data):
    customer_name = _clean(data.get('customer_name'))
    phone = _clean(data.get('phone'))
    service_type = _clean(data.get('service_type'))
    if not customer_name or not phone or not data.get('date') or not service_type:
        raise ValidationError('customer_name, phone, date and service_type required')
    date = _parse_booking_date(data.get('date'))
    notes = _clean(data.get('notes'))
    address = _clean(data.get('address'))
    if service_type == HOME_SERVICE and address:
        notes = f'[Home Service Address: {address}] {notes}'.strip()
    booking = Appointment.objects.create(
        booking_ref=_unique_number('APT', Appointment, 'booking_ref', hex_suffix=True),
        customer_name=customer_name,
        email=_clean(data.get('email')),
        phone=phone,
        date=date,
        service_type=service_type,
        notes=notes,
    )
    notify_event('BOOKING_REQUESTED', booking_id=booking.pk, booking_ref=booking.booking_ref)
    return booking


def set_booking_status(booking, new_status, actor=None):
    new_status = _validate_choice(new_status, BookingStatus, 'status')
    with transaction.atomic():
        b = Appointment.objects.select_for_update().filter(pk=booking.pk).first()
        if b is None:
            raise NotFound('Booking not found')
        if new_status not in BOOKING_TRANSITIONS.get(b.status, ()):
            raise InvalidTransition(f'Cannot move booking from {b.status} to {new_status}')
        b.status = new_status
        b.save(update_fields=['status', 'updated_at'])
        log_activity(actor, f'BOOKING_{new_status}', 'Appointment', b.pk, b.booking_ref)
    return b


def start_job_from_booking(booking, customer, vehicle, actor=None, estimated_cost=0, mechanic=None):
    """Open a job order for a confirmed booking and close the booking. Returns (booking, job_order)."""
    with transaction.atomic():
        b = Appointment.objects.select_for_update().filter(pk=booking.pk).first()
        if b is None:
            raise NotFound('Booking not found')
        if b.status != BookingStatus.CONFIRMED:
            raise InvalidTransition('Only confirmed bookings can start a job order')
        complaint = f'{b.service_type}: {b.notes}' if b.notes else b.service_type
        job = create_job_order(
            customer, vehicle, complaint,
            estimated_cost=estimated_cost, mechanic=mechanic, actor=actor,
        )
        b.job_order = job
        b.status = BookingStatus.COMPLETED
        b.save(update_fields=['job_order', 'status', 'updated_at'])
    return b, job


def delete_booking(booking, actor=None):
    if booking.status not in BOOKING_TERMINAL:
        raise InvalidTransition('Only cancelled or completed bookings can be deleted')
    pk, ref = booking.pk, booking.booking_ref
    booking.delete()
    log_activity(actor, 'DELETE_BOOKING', 'Appointment', pk, ref)


def purge_bookings(confirm=False, actor=None):
    """Delete every CANCELLED or COMPLETED booking. Requires confirm=True; returns the count."""
    if confirm is not True:
        raise ValidationError('Purge requires explicit confirmation')
    with transaction.atomic():
        qs = Appointment.objects.filter(status__in=BOOKING_TERMINAL)
        count = qs.count()
        qs.delete()
    log_activity(actor, 'PURGE_BOOKINGS', 'Appointment', None, f'{count} removed')
    logger.info('Purged %s booking(s)', count)
    return count


# --- Public tracking ---

def track_reference(reference, contact):
    """
    Customer self-service lookup. Job orders match job number + plate number;
    bookings (APT- refs) match ref + phone or email.
    """
    reference = _clean(reference).upper()
    contact = _clean(contact)
    if not reference or not contact:
        raise ValidationError('reference and contact required')
    if reference.startswith('APT-'):
        booking = Appointment.objects.filter(booking_ref__iexact=reference).filter(
            Q(phone=contact) | Q(email__iexact=contact)
        ).first()
        if booking is None:
            raise NotFound('No booking matches these details')
        return {
            'type': 'booking',
            'reference': booking.booking_ref,
            'status': booking.status,
            'service_type': booking.service_type,
            'date': booking.date.isoformat(),
            'job_number': booking.job_order.job_number if booking.job_order_id else None,
        }
    job = JobOrder.objects.select_related('vehicle').filter(
        job_number__iexact=reference, vehicle__plate_number__iexact=contact
    ).first()
    if job is None:
        raise NotFound('No job order matches these details')
    invoice = Invoice.objects.filter(job_order=job).first()
    return {
        'type': 'job_order',
        'reference': job.job_number,
        'status': job.status,
        'vehicle': job.vehicle.description,
        'plate_number': job.vehicle.plate_number,
        'updated_at': job.updated_at.isoformat(),
        'invoice_status': invoice.status if invoice else None,
        'balance': str(invoice.balance) if invoice else None,
    }


# --- Inquiries ---

def create_inquiry(data):
    """Storefront question. part_id, when given, must name an existing part."""
    customer_name = _clean(data.get('customer_name'))
    email = _clean(data.get('email'))
    message = _clean(data.get('message'))
    if not customer_name or not email or not message:
        raise ValidationError('customer_name, email and message required')
    part = None
    part_name = _clean(data.get('part_name'))
    if data.get('part_id') not in (None, ''):
        part = Part.objects.filter(pk=to_positive_int(data['part_id'], 'part_id')).first()
        if part is None:
            raise NotFound('Part not found')
        part_name = part.name
    inquiry = Inquiry.objects.create(
        customer_name=customer_name,
        email=email,
        phone=_clean(data.get('phone')),
        message=message,
        part=part,
        part_name=part_name,
    )
    log_activity(None, 'CREATE_INQUIRY', 'Inquiry', inquiry.pk, customer_name)
    notify_event('INQUIRY_RECEIVED', inquiry_id=inquiry.pk, email=email, part_name=part_name)
    return inquiry


def inquiries_new_first():
    """Unhandled (NEW) inquiries first, newest first within each group."""
    return Inquiry.objects.select_related('part').annotate(
        is_new=Case(When(status=InquiryStatus.NEW, then=Value(0)), default=Value(1))
    ).order_by('is_new', '-created_at', '-id')


def set_inquiry_status(inquiry, status, actor=None):
    inquiry.status = _validate_choice(status, InquiryStatus, 'inquiry status')
    inquiry.save(update_fields=['status'])
    log_activity(actor, 'UPDATE_INQUIRY', 'Inquiry', inquiry.pk, inquiry.status)
    return inquiry
