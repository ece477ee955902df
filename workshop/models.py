from decimal import Decimal

from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import AbstractUser
from django.db import models

from .exceptions import ValidationError


# --- Choice constants ---

class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Admin'
    ADVISOR = 'ADVISOR', 'Service Advisor'
    MECHANIC = 'MECHANIC', 'Mechanic'
    ACCOUNTANT = 'ACCOUNTANT', 'Accountant'
    CUSTOMER = 'CUSTOMER', 'Customer'


class JobOrderStatus(models.TextChoices):
    RECEIVED = 'RECEIVED', 'Received'
    DIAGNOSING = 'DIAGNOSING', 'Diagnosing'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    WAITING_FOR_PARTS = 'WAITING_FOR_PARTS', 'Waiting for Parts'
    COMPLETED = 'COMPLETED', 'Completed'
    RELEASED = 'RELEASED', 'Released'


class Priority(models.TextChoices):
    NORMAL = 'NORMAL', 'Normal'
    URGENT = 'URGENT', 'Urgent'


class InvoiceStatus(models.TextChoices):
    UNPAID = 'UNPAID', 'Unpaid'
    PARTIALLY_PAID = 'PARTIALLY_PAID', 'Partially Paid'
    PAID = 'PAID', 'Paid'


class PaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Cash'
    BANK = 'BANK', 'Bank Transfer'
    GCASH = 'GCASH', 'GCash'
    PAYMAYA = 'PAYMAYA', 'PayMaya'


class OnlinePaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Cash'
    BANK = 'BANK', 'Bank Transfer'
    GCASH = 'GCASH', 'GCash'
    PAYMAYA = 'PAYMAYA', 'PayMaya'
    CARD = 'CARD', 'Card'


class DeliveryMethod(models.TextChoices):
    PICKUP = 'PICKUP', 'Store Pickup'
    DELIVERY = 'DELIVERY', 'Delivery'


class OnlineOrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESSING = 'PROCESSING', 'Processing'
    SHIPPED = 'SHIPPED', 'Shipped'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class BookingStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    COMPLETED = 'COMPLETED', 'Completed'


class StockReason(models.TextChoices):
    INITIAL = 'INITIAL', 'Initial Stock'
    MANUAL_ADD = 'MANUAL_ADD', 'Manual Add'
    MANUAL_DEDUCT = 'MANUAL_DEDUCT', 'Manual Deduct'
    JOB_ORDER = 'JOB_ORDER', 'Used on Job Order'
    JOB_ORDER_RETURN = 'JOB_ORDER_RETURN', 'Returned from Job Order'
    ONLINE_ORDER = 'ONLINE_ORDER', 'Online Order'
    ONLINE_ORDER_CANCEL = 'ONLINE_ORDER_CANCEL', 'Online Order Cancelled'


class PayoutMethod(models.TextChoices):
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
    GCASH = 'GCASH', 'GCash'
    PAYMAYA = 'PAYMAYA', 'PayMaya'


class InquiryStatus(models.TextChoices):
    NEW = 'NEW', 'New'
    READ = 'READ', 'Read'
    RESPONDED = 'RESPONDED', 'Responded'


# --- Accounts ---

class User(AbstractUser):
    """Staff or self-registered customer account. Login is by username; the API hands out DRF tokens."""
    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.ADVISOR)
    security_pin = models.CharField(max_length=128, blank=True)
    two_factor_enabled = models.BooleanField(default=False)
    two_factor_secret = models.CharField(max_length=64, blank=True)
    two_factor_pending_secret = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_user'

    def save(self, *args, **kwargs):
        if not self.name and (self.first_name or self.last_name):
            self.name = f'{self.first_name} {self.last_name}'.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name or self.username

    @property
    def has_security_pin(self):
        return bool(self.security_pin)

    def set_security_pin(self, raw_pin):
        self.security_pin = make_password(raw_pin)

    def check_security_pin(self, raw_pin):
        if not self.security_pin or not raw_pin:
            return False
        return check_password(raw_pin, self.security_pin)


# --- Registry ---

class Customer(models.Model):
    user = models.OneToOneField(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='customer_profile'
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_customer'
        ordering = ['name']

    def __str__(self):
        return self.name


class Vehicle(models.Model):
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='vehicles'
    )
    make = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    year = models.PositiveIntegerField(null=True, blank=True)
    color = models.CharField(max_length=50, blank=True)
    plate_number = models.CharField(max_length=20)
    vin = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_vehicle'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.plate_number} ({self.make} {self.model})'

    @property
    def description(self):
        parts = [str(self.year) if self.year else '', self.make, self.model]
        return ' '.join(p for p in parts if p)


# --- Inventory ---

class Part(models.Model):
    part_number = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    supplier = models.CharField(max_length=255, blank=True)
    quantity = models.PositiveIntegerField(default=0)
    min_threshold = models.PositiveIntegerField(default=5)
    buying_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    is_public = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_part'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name='part_quantity_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.part_number} {self.name}'

    @property
    def is_low_stock(self):
        return self.quantity <= self.min_threshold


class StockLog(models.Model):
    part = models.ForeignKey(Part, on_delete=models.CASCADE, related_name='stock_logs')
    reason = models.CharField(max_length=24, choices=StockReason.choices)
    delta = models.IntegerField()
    quantity_after = models.PositiveIntegerField()
    note = models.CharField(max_length=255, blank=True)
    actor = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_logs'
    )
    job_order = models.ForeignKey(
        'JobOrder', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_logs'
    )
    online_order = models.ForeignKey(
        'OnlineOrder', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_logs'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_stock_log'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'{self.part_id} {self.delta:+d} ({self.reason})'


# --- Job orders ---

class JobOrder(models.Model):
    job_number = models.CharField(max_length=20, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='job_orders')
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='job_orders')
    mechanic = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_job_orders'
    )
    complaint = models.TextField()
    notes = models.TextField(blank=True)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    estimated_time = models.CharField(max_length=100, blank=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.NORMAL)
    status = models.CharField(
        max_length=20, choices=JobOrderStatus.choices, default=JobOrderStatus.RECEIVED
    )
    is_archived = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_job_orders'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_job_order'
        ordering = ['-created_at']

    def __str__(self):
        return self.job_number

    @property
    def invoice_id(self):
        invoice = getattr(self, 'invoice', None) if self.pk else None
        return invoice.pk if invoice else None


class JobOrderPart(models.Model):
    job_order = models.ForeignKey(JobOrder, on_delete=models.CASCADE, related_name='parts')
    part = models.ForeignKey(Part, on_delete=models.PROTECT, related_name='job_order_lines')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_job_order_part'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f'{self.job_order_id} x{self.quantity} {self.part_id}'

    @property
    def line_total(self):
        return (self.unit_price * self.quantity).quantize(Decimal('0.01'))


# --- Billing ---

class Invoice(models.Model):
    """Frozen bill for one job order. Only payment progress changes after issue."""
    MUTABLE_FIELDS = frozenset({'status', 'amount_paid', 'updated_at'})

    invoice_number = models.CharField(max_length=20, unique=True)
    job_order = models.OneToOneField(JobOrder, on_delete=models.PROTECT, related_name='invoice')
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, null=True, blank=True, related_name='invoices'
    )
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    plate_number = models.CharField(max_length=20, blank=True)
    vehicle_description = models.CharField(max_length=255, blank=True)
    job_number = models.CharField(max_length=20)
    labor_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    sub_total = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    status = models.CharField(
        max_length=20, choices=InvoiceStatus.choices, default=InvoiceStatus.UNPAID
    )
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='issued_invoices'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_invoice'
        ordering = ['-created_at']

    def __str__(self):
        return self.invoice_number

    def save(self, *args, **kwargs):
        if not self._state.adding:
            update_fields = kwargs.get('update_fields')
            if update_fields is None or not set(update_fields) <= self.MUTABLE_FIELDS:
                raise ValidationError('Issued invoices cannot be edited')
        super().save(*args, **kwargs)

    @property
    def balance(self):
        return self.total_amount - self.amount_paid


class InvoiceLine(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='lines')
    part = models.ForeignKey(
        Part, on_delete=models.PROTECT, null=True, blank=True, related_name='invoice_lines'
    )
    part_number = models.CharField(max_length=64)
    part_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'workshop_invoice_line'
        ordering = ['id']

    def __str__(self):
        return f'{self.invoice_id} {self.part_name} x{self.quantity}'


class Payment(models.Model):
    """Append-only ledger row against an invoice."""
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    reference_number = models.CharField(max_length=100, blank=True)
    received_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='received_payments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_payment'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'{self.invoice_id} {self.amount} ({self.method})'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Payments cannot be edited')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError('Payments cannot be deleted')


# --- Online shop ---

class OnlineOrder(models.Model):
    order_number = models.CharField(max_length=20, unique=True)
    customer_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True)
    payment_method = models.CharField(max_length=20, choices=OnlinePaymentMethod.choices)
    payment_reference = models.CharField(max_length=64, blank=True)
    delivery_method = models.CharField(
        max_length=20, choices=DeliveryMethod.choices, default=DeliveryMethod.PICKUP
    )
    shipping_address = models.TextField(blank=True)
    shipping_city = models.CharField(max_length=100, blank=True)
    shipping_postal_code = models.CharField(max_length=20, blank=True)
    items_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    shipping_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    status = models.CharField(
        max_length=20, choices=OnlineOrderStatus.choices, default=OnlineOrderStatus.PENDING
    )
    is_archived = models.BooleanField(default=False)
    tracking_number = models.CharField(max_length=100, blank=True)
    courier_name = models.CharField(max_length=100, blank=True)
    payment_confirmed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_online_order'
        ordering = ['-created_at']

    def __str__(self):
        return self.order_number


class OnlineOrderItem(models.Model):
    order = models.ForeignKey(OnlineOrder, on_delete=models.CASCADE, related_name='items')
    part = models.ForeignKey(
        Part, on_delete=models.SET_NULL, null=True, blank=True, related_name='online_order_items'
    )
    part_number = models.CharField(max_length=64)
    part_name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    qty = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'workshop_online_order_item'
        ordering = ['id']

    def __str__(self):
        return f'{self.order_id} {self.part_name} x{self.qty}'


class OnlineOrderRefund(models.Model):
    order = models.OneToOneField(OnlineOrder, on_delete=models.PROTECT, related_name='refund')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reference = models.CharField(max_length=100)
    note = models.CharField(max_length=255, blank=True)
    processed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='processed_refunds'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_online_order_refund'
        ordering = ['-created_at']

    def __str__(self):
        return f'Refund {self.order_id} {self.amount}'


# --- Wallet ---

class WalletState(models.Model):
    """Singleton row: payouts lock it and bump the version."""
    version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_wallet_state'

    def __str__(self):
        return f'Wallet v{self.version}'


class Payout(models.Model):
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=PayoutMethod.choices)
    account_name = models.CharField(max_length=255, blank=True)
    account_number = models.CharField(max_length=64)
    processed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='payouts'
    )
    balance_version = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_payout'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'Payout {self.amount} via {self.method}'


# --- Bookings ---

class Appointment(models.Model):
    booking_ref = models.CharField(max_length=20, unique=True)
    customer_name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30)
    date = models.DateTimeField()
    service_type = models.CharField(max_length=100)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING
    )
    job_order = models.OneToOneField(
        JobOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='booking'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'workshop_appointment'
        ordering = ['date']

    def __str__(self):
        return f'{self.booking_ref} {self.customer_name}'


# --- Audit ---

class ActivityLog(models.Model):
    user = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs'
    )
    action = models.CharField(max_length=50)
    entity = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=50, blank=True)
    details = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_activity_log'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'{self.action} {self.entity}#{self.entity_id}'


# --- Inquiries ---

class Inquiry(models.Model):
    """Question sent from the storefront, optionally about a catalogue part."""
    customer_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True)
    message = models.TextField()
    part = models.ForeignKey(
        Part, on_delete=models.SET_NULL, null=True, blank=True, related_name='inquiries'
    )
    part_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(
        max_length=20, choices=InquiryStatus.choices, default=InquiryStatus.NEW
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workshop_inquiry'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'inquiries'

    def __str__(self):
        return f'{self.customer_name} <{self.email}>'
