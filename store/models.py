from decimal import Decimal

from cloudinary.models import CloudinaryField
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


# ------------------------------
# USER MODEL
# ------------------------------
class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required")
        email = self.normalize_email(email)
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
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Customer account. Logs in with email; ``is_staff`` is the admin flag
    that opens the back-office.
    """
    username = None
    first_name = None
    last_name = None

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150)
    address = models.TextField(blank=True)
    phone_number = models.CharField(max_length=30, blank=True)
    birth_date = models.DateField(null=True, blank=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    def __str__(self):
        return self.name or self.email

    @property
    def is_admin(self):
        return self.is_staff

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.name


# ------------------------------
# CATEGORY MODEL
# ------------------------------
class Category(models.Model):
    name = models.CharField(max_length=100)

    class Meta:
        ordering = ['name']
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


# ------------------------------
# PRODUCT MODEL
# ------------------------------
class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_archived=False)

    def in_stock(self):
        return self.filter(stock_quantity__gt=0)

    def catalog(self):
        """What shoppers are allowed to browse."""
        return self.active().in_stock()


class Product(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    # Plain integer: a late webhook may push it below zero and must not fail
    stock_quantity = models.IntegerField(default=0)

    image = CloudinaryField('image', folder='products/', null=True, blank=True)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products"
    )

    # Soft delete: archived rows stay referenced by historical order items
    is_archived = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


# ------------------------------
# ORDER MODEL
# ------------------------------
class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = 'Pending', 'Pending payment'
        PAID = 'Paid', 'Paid'
        SHIPPED = 'Shipped', 'Shipped'
        CANCELLED_BY_USER = 'Cancelled_By_User', 'Cancelled by customer'

    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='orders')

    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00')
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    stripe_session_id = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.id or 'unsaved'} - {self.user}"

    @property
    def is_cancellable(self):
        return self.status == self.Status.PAID

    def items_total(self):
        """Sum of line items. The invoice shows ``total_amount`` instead."""
        total = Decimal('0.00')
        for item in self.items.all():
            total += item.subtotal
        return total.quantize(Decimal('0.01'))


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(default=1)
    # Snapshot of the catalog price at checkout time
    price_at_purchase = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f"{self.product.name} × {self.quantity}"

    @property
    def subtotal(self):
        return self.price_at_purchase * self.quantity
