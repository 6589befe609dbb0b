from django.contrib import admin, messages
from django.utils.html import format_html

from . import ranking
from .models import (
    CartOrder,
    Category,
    Order,
    PaymentMethod,
    Transaction,
    Wallet,
    Wallpaper,
    WallpaperLike,
)

admin.site.register(Category)


@admin.register(Wallpaper)
class WallpaperAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'price', 'ranking', 'status', 'is_custom', 'preview_image')
    list_filter = ('status', 'is_custom', 'category')
    search_fields = ('name', 'description', 'prompt')
    readonly_fields = ('created_at',)

    actions = ['move_to_front', 'promote_one', 'demote_one', 'mark_as_archived']

    def preview_image(self, obj):
        if obj.image:
            return format_html('<img src="{}" width="80" style="border-radius:8px;" />', obj.image_url)
        return "No Image"
    preview_image.short_description = "Preview"

    def move_to_front(self, request, queryset):
        for wallpaper in queryset:
            ranking.move_wallpaper(wallpaper.pk, 1)
        self.message_user(request, f"{queryset.count()} wallpaper(s) moved to the front.", messages.SUCCESS)
    move_to_front.short_description = "Move to the front of the catalog"

    def promote_one(self, request, queryset):
        for wallpaper in queryset.order_by('ranking'):
            ranking.move_by(wallpaper.pk, -1)
    promote_one.short_description = "Move up one place"

    def demote_one(self, request, queryset):
        # back to front so neighbours moved together keep their order
        for wallpaper in queryset.order_by('-ranking'):
            ranking.move_by(wallpaper.pk, 1)
    demote_one.short_description = "Move down one place"

    def mark_as_archived(self, request, queryset):
        queryset.update(status='archived')
    mark_as_archived.short_description = "Archive"


@admin.register(WallpaperLike)
class WallpaperLikeAdmin(admin.ModelAdmin):
    list_display = ('user', 'wallpaper', 'created_at')


@admin.register(CartOrder)
class CartOrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'customer', 'quantity', 'total_amount', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'email', 'total_amount', 'status', 'payment_status', 'order_date')
    list_filter = ('status', 'payment_status', 'order_date')
    search_fields = ('order_number', 'email', 'stripe_payment_id')

    actions = ['mark_as_shipped', 'mark_as_delivered', 'mark_as_cancelled']

    def mark_as_shipped(self, request, queryset):
        queryset.update(status='shipped')
    mark_as_shipped.short_description = "Mark as Shipped"

    def mark_as_delivered(self, request, queryset):
        queryset.update(status='delivered')
    mark_as_delivered.short_description = "Mark as Delivered"

    def mark_as_cancelled(self, request, queryset):
        queryset.update(status='cancelled')
    mark_as_cancelled.short_description = "Mark as Cancelled"


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ('user', 'type', 'brand', 'bank_name', 'last_four', 'is_default')
    list_filter = ('type', 'is_default')


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('user', 'balance', 'currency', 'updated_at')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'type', 'amount', 'currency', 'status', 'created_at')
    list_filter = ('type', 'status')
    search_fields = ('description', 'stripe_payment_id')
