from enum import StrEnum

from tortoise import fields
from tortoise.models import Model


class BookingStatus(StrEnum):
    PENDING = "pending"  # just created, awaiting staff confirmation
    CONFIRMED = "confirmed"  # accepted by staff
    CANCELLED = "cancelled"  # terminal, kept for financial records


class PaymentStatus(StrEnum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERPAID = "overpaid"


class MenuCategory(StrEnum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


class Property(Model):
    id = fields.UUIDField(primary_key=True)
    name = fields.CharField(max_length=200)
    address = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "properties"


class Room(Model):
    id = fields.UUIDField(primary_key=True)
    property = fields.ForeignKeyField(
        "models.Property", related_name="rooms", on_delete=fields.CASCADE
    )
    name = fields.CharField(max_length=100)
    nightly_rate = fields.DecimalField(max_digits=10, decimal_places=2)
    capacity = fields.IntField(default=1)

    class Meta:  # type: ignore
        table = "rooms"
        unique_together = (("property", "name"),)


class Booking(Model):
    id = fields.UUIDField(primary_key=True)

    room = fields.ForeignKeyField(
        "models.Room", related_name="bookings", on_delete=fields.RESTRICT
    )
    # not a FK: bookings outlive the customer account for record-keeping
    customer_id = fields.UUIDField()

    check_in = fields.DateField()
    check_out = fields.DateField()  # exclusive

    price = fields.DecimalField(max_digits=10, decimal_places=2)
    status = fields.CharEnumField(BookingStatus, default=BookingStatus.PENDING)
    # cache of the ledger, recomputed in every transaction touching payments or price
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.UNPAID)

    notes = fields.TextField(null=True)
    cancellation_reason = fields.TextField(null=True)
    cancelled_at = fields.DatetimeField(null=True)
    cancelled_by = fields.UUIDField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:  # type: ignore
        table = "bookings"
        ordering = ["-created_at"]


class Payment(Model):
    id = fields.UUIDField(primary_key=True)
    booking = fields.ForeignKeyField(
        "models.Booking", related_name="payments", on_delete=fields.CASCADE
    )
    amount = fields.DecimalField(max_digits=10, decimal_places=2)  # negative = refund
    method = fields.CharField(max_length=32, null=True)
    reference = fields.CharField(max_length=128, null=True)
    recorded_by = fields.UUIDField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "payments"
        ordering = ["created_at"]


class SystemSettings(Model):
    id = fields.IntField(primary_key=True)  # always 1
    allow_manager_delete = fields.BooleanField(default=False)
    updated_by = fields.UUIDField(null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:  # type: ignore
        table = "system_settings"


class Amenity(Model):
    id = fields.UUIDField(primary_key=True)
    name = fields.CharField(max_length=100, unique=True)
    description = fields.TextField(null=True)
    icon = fields.CharField(max_length=64, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "amenities"
        ordering = ["name"]


class FoodMenuItem(Model):
    id = fields.UUIDField(primary_key=True)
    property = fields.ForeignKeyField(
        "models.Property", related_name="menu_items", on_delete=fields.CASCADE
    )
    category = fields.CharEnumField(MenuCategory)
    name = fields.CharField(max_length=200)
    description = fields.TextField(null=True)
    price = fields.DecimalField(max_digits=8, decimal_places=2)
    is_available = fields.BooleanField(default=True)

    class Meta:  # type: ignore
        table = "food_menu_items"
        ordering = ["category", "name"]
