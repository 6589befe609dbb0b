import json
from decimal import Decimal

from cloudinary.models import CloudinaryField
from django.conf import settings
from django.db import models
from django.db.models import F, Max
from django.utils import timezone

from . import storage

User = settings.AUTH_USER_MODEL

# Largest value a PositiveIntegerField holds on every backend
MAX_RANKING = 2147483647


# ------------------------------
# CATEGORY MODEL
# ------------------------------
class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


# ------------------------------
# WALLPAPER MODEL
# ------------------------------
class Wallpaper(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('deleted', 'Deleted'),
        ('archived', 'Archived'),
    ]

    name = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    image = CloudinaryField('image', folder='wallpapers/')
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='wallpapers'
    )
    size = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=8, decimal_places=2)

    owner = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='wallpapers'
    )
    is_custom = models.BooleanField(default=False)
    prompt = models.TextField(blank=True)

    # Lower number = shown first
    ranking = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = [F('ranking').asc(nulls_last=True), '-created_at']

    def __str__(self):
        return self.name or f"Wallpaper #{self.pk or 'unsaved'}"

    def save(self, *args, **kwargs):
        """
        New wallpapers join the end of the display order.
        """
        if self._state.adding and self.ranking is None:
            self.ranking = next_ranking()
        super().save(*args, **kwargs)

    @property
    def image_url(self):
        return storage.image_url(self.image)

    def to_dict(self, ranking=None):
        return {
            'id': self.pk,
            'name': self.name,
            'description': self.description,
            'imageUrl': self.image_url,
            'primaryImagery': self.category.name if self.category else '',
            'size': self.size,
            'price': float(self.price),
            'ranking': self.ranking if ranking is None else ranking,
            'userId': self.owner_id,
            'isCustom': self.is_custom,
            'status': self.status,
            'createdAt': self.created_at.isoformat(),
        }


def next_ranking():
    highest = Wallpaper.objects.aggregate(top=Max('ranking'))['top']
    return (highest or 0) + 1


class WallpaperLike(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wallpaper_likes')
    wallpaper = models.ForeignKey(Wallpaper, on_delete=models.CASCADE, related_name='likes')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'wallpaper'], name='unique_wallpaper_like'),
        ]

    def __str__(self):
        return f"{self.user} ♥ {self.wallpaper}"


# ------------------------------
# CART ORDER MODEL
# ------------------------------
class CartOrder(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    project = models.ForeignKey(Wallpaper, on_delete=models.CASCADE, related_name='cart_orders')
    customer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='cart_orders')
    quantity = models.PositiveIntegerField(default=1)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.project} × {self.quantity} ({self.status})"

    def to_dict(self):
        return {
            'id': self.pk,
            'projectId': self.project_id,
            'customerId': self.customer_id,
            'quantity': self.quantity,
            'totalAmount': float(self.total_amount),
            'status': self.status,
            'createdDate': self.created_at.isoformat(),
        }


# ------------------------------
# ORDER MODEL
# ------------------------------
class Order(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    order_number = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    email = models.EmailField(blank=True)

    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    payment_method = models.CharField(max_length=100, blank=True)
    stripe_payment_id = models.CharField(max_length=255, blank=True)

    shipping_address = models.TextField(blank=True)
    billing_address = models.TextField(blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)

    order_date = models.DateTimeField(default=timezone.now)
    # JSON list of the purchased cart lines
    items = models.TextField(default='[]')

    class Meta:
        ordering = ['-order_date']

    def __str__(self):
        return f"Order #{self.order_number}"

    def save(self, *args, **kwargs):
        """
        A paid order can no longer be merely pending.
        """
        if self.payment_status == 'paid' and self.status == 'pending':
            self.status = 'processing'
        super().save(*args, **kwargs)

    def item_list(self):
        try:
            items = json.loads(self.items or '[]')
        except ValueError:
            return []
        return items if isinstance(items, list) else []

    def contains_wallpaper(self, wallpaper_id):
        return any(str(item.get('wallpaperId')) == str(wallpaper_id) for item in self.item_list())

    def to_dict(self):
        return {
            'id': self.pk,
            'orderNumber': self.order_number,
            'totalAmount': float(self.total_amount),
            'status': self.status,
            'paymentStatus': self.payment_status,
            'paymentMethod': self.payment_method,
            'stripePaymentId': self.stripe_payment_id,
            'shippingAddress': self.shipping_address,
            'billingAddress': self.billing_address,
            'trackingNumber': self.tracking_number,
            'orderDate': self.order_date.isoformat(),
            'items': self.item_list(),
            'userId': self.user_id,
        }


# ------------------------------
# PAYMENT MIRROR MODELS
# ------------------------------
class PaymentMethod(models.Model):
    TYPE_CHOICES = [
        ('card', 'Card'),
        ('bank_account', 'Bank account'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payment_methods')
    stripe_payment_method_id = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    last_four = models.CharField(max_length=4, blank=True)
    brand = models.CharField(max_length=50, blank=True)
    expiry_date = models.CharField(max_length=10, blank=True)
    bank_name = models.CharField(max_length=100, blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-is_default', '-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'stripe_payment_method_id'], name='unique_user_payment_method'),
        ]

    def __str__(self):
        label = self.brand or self.bank_name or self.type
        return f"{label} ending in {self.last_four}"

    def to_dict(self):
        return {
            'id': self.stripe_payment_method_id,
            'type': self.type,
            'lastFour': self.last_four,
            'cardType': self.brand,
            'expiryDate': self.expiry_date,
            'bankName': self.bank_name,
            'isDefault': self.is_default,
        }


class Wallet(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='wallet')
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='USD')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} wallet ({self.balance} {self.currency})"

    def to_dict(self):
        return {
            'id': self.pk,
            'userId': self.user_id,
            'balance': float(self.balance),
            'currency': self.currency,
            'lastUpdated': self.updated_at.isoformat() if self.updated_at else None,
        }


class Transaction(models.Model):
    TYPE_CHOICES = [
        ('deposit', 'Deposit'),
        ('withdrawal', 'Withdrawal'),
        ('transfer', 'Transfer'),
        ('payment', 'Payment'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='transactions')
    wallet = models.ForeignKey(Wallet, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    description = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='payment')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_method_id = models.CharField(max_length=255, blank=True)
    stripe_payment_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.type} {self.amount} {self.currency} ({self.status})"

    def to_dict(self):
        return {
            'id': self.pk,
            'userId': self.user_id,
            'amount': float(self.amount),
            'currency': self.currency,
            'description': self.description,
            'type': self.type,
            'status': self.status,
            'paymentMethodId': self.payment_method_id,
            'stripePaymentId': self.stripe_payment_id,
            'date': self.created_at.isoformat(),
        }
