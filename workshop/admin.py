from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from . import services
from .exceptions import WorkshopError
from .models import (
    ActivityLog,
    Appointment,
    Customer,
    Inquiry,
    Invoice,
    InvoiceLine,
    JobOrder,
    JobOrderPart,
    OnlineOrder,
    OnlineOrderItem,
    OnlineOrderRefund,
    Part,
    Payment,
    Payout,
    StockLog,
    User,
    Vehicle,
    WalletState,
)


class ReadOnlyAdminMixin:
    """Ledger rows are written by the service layer only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# --- Inlines ---

class VehicleInline(admin.TabularInline):
    model = Vehicle
    extra = 0
    fields = ('plate_number', 'make', 'model', 'year', 'color', 'vin')


class JobOrderPartInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = JobOrderPart
    extra = 0
    readonly_fields = ('part', 'quantity', 'unit_price', 'created_at')


class InvoiceLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = InvoiceLine
    extra = 0
    readonly_fields = ('part', 'part_number', 'part_name', 'quantity', 'unit_price', 'line_total')


class PaymentInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ('amount', 'method', 'reference_number', 'received_by', 'created_at')


class OnlineOrderItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = OnlineOrderItem
    extra = 0
    readonly_fields = ('part', 'part_number', 'part_name', 'price', 'qty', 'line_total')


# --- User (replace default auth User admin) ---

class CustomUserCreationForm(UserCreationForm):
    class Meta(UserCreationForm.Meta):
        model = User
        fields = UserCreationForm.Meta.fields + ('name', 'email', 'phone', 'role')


class CustomUserChangeForm(UserChangeForm):
    class Meta:
        model = User
        fields = '__all__'


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    form = CustomUserChangeForm
    add_form = CustomUserCreationForm
    list_display = ('username', 'name', 'role', 'two_factor_enabled', 'is_active', 'created_at')
    list_filter = ('role', 'two_factor_enabled', 'is_active')
    search_fields = ('username', 'name', 'email', 'phone')
    ordering = ('-date_joined',)
    readonly_fields = ('security_pin', 'two_factor_secret', 'two_factor_pending_secret', 'created_at', 'updated_at')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Workshop', {
            'fields': (
                'name', 'phone', 'role', 'security_pin',
                'two_factor_enabled', 'two_factor_secret', 'two_factor_pending_secret',
                'created_at', 'updated_at',
            )
        }),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Workshop', {'fields': ('name', 'email', 'phone', 'role')}),
    )


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email', 'created_at')
    search_fields = ('name', 'phone', 'email')
    readonly_fields = ('created_at', 'updated_at')
    autocomplete_fields = ('user',)
    inlines = [VehicleInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ('plate_number', 'make', 'model', 'year', 'customer')
    search_fields = ('plate_number', 'vin', 'customer__name')
    autocomplete_fields = ('customer',)


@admin.register(Part)
class PartAdmin(admin.ModelAdmin):
    list_display = ('part_number', 'name', 'quantity', 'min_threshold', 'selling_price', 'is_public', 'low_stock')
    list_filter = ('is_public', 'supplier')
    search_fields = ('part_number', 'name', 'supplier')
    readonly_fields = ('quantity', 'created_at', 'updated_at')
    actions = ['delete_unused_parts']

    @admin.display(boolean=True, description='Low stock')
    def low_stock(self, obj):
        return obj.is_low_stock

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description='Delete selected parts not used on job orders or invoices')
    def delete_unused_parts(self, request, queryset):
        deleted = 0
        for part in queryset:
            try:
                services.delete_part(part, actor=request.user)
                deleted += 1
            except WorkshopError as exc:
                self.message_user(request, exc.message, messages.WARNING)
        self.message_user(request, f'Deleted {deleted} part(s).', messages.SUCCESS)


@admin.register(StockLog)
class StockLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('part', 'reason', 'delta', 'quantity_after', 'actor', 'created_at')
    list_filter = ('reason',)
    search_fields = ('part__part_number', 'part__name', 'note')


@admin.register(JobOrder)
class JobOrderAdmin(admin.ModelAdmin):
    list_display = ('job_number', 'customer', 'vehicle', 'mechanic', 'status', 'priority', 'is_archived', 'created_at')
    list_filter = ('status', 'priority', 'is_archived')
    search_fields = ('job_number', 'customer__name', 'vehicle__plate_number')
    readonly_fields = ('job_number', 'status', 'created_at', 'updated_at')
    autocomplete_fields = ('customer', 'vehicle')
    inlines = [JobOrderPartInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('invoice_number', 'job_number', 'customer_name', 'total_amount', 'amount_paid', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('invoice_number', 'job_number', 'customer_name', 'plate_number')
    inlines = [InvoiceLineInline, PaymentInline]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('invoice', 'amount', 'method', 'reference_number', 'received_by', 'created_at')
    list_filter = ('method',)
    search_fields = ('invoice__invoice_number', 'reference_number')


@admin.register(OnlineOrder)
class OnlineOrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'customer_name', 'total_amount', 'status', 'delivery_method', 'is_archived', 'created_at')
    list_filter = ('status', 'delivery_method', 'payment_method', 'is_archived')
    search_fields = ('order_number', 'customer_name', 'email')
    readonly_fields = (
        'order_number', 'status', 'items_total', 'shipping_fee', 'total_amount',
        'payment_reference', 'payment_confirmed_at', 'created_at', 'updated_at',
    )
    inlines = [OnlineOrderItemInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OnlineOrderRefund)
class OnlineOrderRefundAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('order', 'amount', 'reference', 'processed_by', 'created_at')


@admin.register(Payout)
class PayoutAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('amount', 'method', 'account_number', 'processed_by', 'balance_version', 'created_at')
    list_filter = ('method',)


@admin.register(WalletState)
class WalletStateAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('version', 'updated_at')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('booking_ref', 'customer_name', 'phone', 'date', 'service_type', 'status')
    list_filter = ('status', 'service_type')
    search_fields = ('booking_ref', 'customer_name', 'phone', 'email')
    readonly_fields = ('booking_ref', 'status', 'job_order', 'created_at', 'updated_at')
    actions = ['purge_terminal_bookings']

    @admin.action(description='Purge all cancelled and completed bookings')
    def purge_terminal_bookings(self, request, queryset):
        count = services.purge_bookings(confirm=True, actor=request.user)
        self.message_user(request, f'Deleted {count} booking(s).', messages.SUCCESS)


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ('customer_name', 'email', 'part_name', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('customer_name', 'email', 'message')
    readonly_fields = ('customer_name', 'email', 'phone', 'message', 'part', 'part_name', 'created_at')

@admin.register(ActivityLog)
class ActivityLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('action', 'entity', 'entity_id', 'user', 'created_at')
    list_filter = ('action', 'entity')
    search_fields = ('details', 'entity_id')
