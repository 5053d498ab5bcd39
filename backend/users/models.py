from decimal import Decimal

from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)
from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


phone_validator = RegexValidator(
    regex=r"^[0-9]{10}$",
    message=_("Please provide a valid 10-digit phone number."),
)


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The Email field must be set")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.Role.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        HOME_KITCHEN = "home_kitchen", _("Home Kitchen")
        DELIVERY_PARTNER = "delivery_partner", _("Delivery Partner")
        ADMIN = "admin", _("Admin")

    name = models.CharField(_("name"), max_length=50)
    email = models.EmailField(_("email address"), unique=True)
    phone = models.CharField(
        _("phone number"),
        max_length=10,
        unique=True,
        null=True,
        blank=True,
        validators=[phone_validator],
    )
    role = models.CharField(
        _("role"), max_length=20, choices=Role.choices, default=Role.CUSTOMER
    )
    profile_image = models.URLField(_("profile image"), blank=True)

    is_active = models.BooleanField(_("active"), default=True)
    is_staff = models.BooleanField(
        _("staff status"),
        default=False,
        help_text=_("Designates whether the user can log into this admin site."),
    )
    date_joined = models.DateTimeField(_("date joined"), default=timezone.now)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        indexes = [
            models.Index(fields=["role", "is_active"], name="users_role_active_idx"),
        ]

    def __str__(self):
        return self.email

    @property
    def is_customer(self):
        return self.role == self.Role.CUSTOMER

    @property
    def is_home_kitchen(self):
        return self.role == self.Role.HOME_KITCHEN

    @property
    def is_delivery_partner(self):
        return self.role == self.Role.DELIVERY_PARTNER

    @property
    def is_admin_role(self):
        return self.role == self.Role.ADMIN or self.is_superuser


class KitchenProfile(models.Model):
    """Kitchen details for users with the HOME_KITCHEN role."""

    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name="kitchen_profile"
    )
    kitchen_name = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    specialties = models.JSONField(default=list, blank=True)
    serving_radius_km = models.PositiveIntegerField(default=5)
    is_verified = models.BooleanField(default=False)
    total_orders = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.kitchen_name or f"Kitchen of {self.user.email}"


class DeliveryPartnerProfile(models.Model):
    """
    Vehicle, location and lifetime statistics for delivery partners.

    `is_available` is False exactly while the partner is bound to at least one
    order in an active delivery state; AssignmentService maintains it.
    """

    class VehicleType(models.TextChoices):
        BICYCLE = "bicycle", _("Bicycle")
        MOTORCYCLE = "motorcycle", _("Motorcycle")
        SCOOTER = "scooter", _("Scooter")
        CAR = "car", _("Car")

    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name="delivery_profile"
    )
    vehicle_type = models.CharField(
        max_length=20, choices=VehicleType.choices, blank=True
    )
    vehicle_number = models.CharField(max_length=20, blank=True)
    is_available = models.BooleanField(default=True, db_index=True)

    current_latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    current_longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    location_updated_at = models.DateTimeField(null=True, blank=True)

    total_deliveries = models.PositiveIntegerField(default=0)
    earnings = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Delivery partner {self.user.email}"
