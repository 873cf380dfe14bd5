from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import Category, Order, OrderItem, Product, User
from .orders import ship_order
from .store_utils import format_currency


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    ordering = ('email',)
    list_display = ('email', 'name', 'is_staff', 'date_joined')
    search_fields = ('email', 'name')
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('name', 'address', 'phone_number', 'birth_date')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2'),
        }),
    )


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name',)
    search_fields = ('name',)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'stock_quantity', 'is_archived', 'preview_image')
    list_filter = ('is_archived', 'category')
    search_fields = ('name',)
    actions = ['archive', 'restore']

    def preview_image(self, obj):
        if obj.image:
            return format_html('<img src="{}" width="80" style="border-radius:8px;" />', obj.image.url)
        return "No Image"
    preview_image.short_description = "Image"

    def archive(self, request, queryset):
        queryset.update(is_archived=True)
    archive.short_description = "Archive selected products"

    def restore(self, request, queryset):
        queryset.update(is_archived=False)
    restore.short_description = "Restore selected products"


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'price_at_purchase')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'display_total', 'status', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('user__name', 'user__email', 'id')
    # Status moves only through the order workflow
    readonly_fields = (
        'user', 'status', 'total_amount', 'stripe_session_id',
        'paid_at', 'created_at', 'updated_at',
    )
    inlines = [OrderItemInline]

    actions = ['mark_as_shipped']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        # A paid order has taken stock; removing it would lose that record
        if obj is not None and obj.status != Order.Status.PENDING:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop('delete_selected', None)
        return actions

    def display_total(self, obj):
        return format_currency(obj.total_amount)
    display_total.short_description = "Total"

    def mark_as_shipped(self, request, queryset):
        shipped = sum(1 for pk in queryset.values_list('pk', flat=True) if ship_order(pk))
        self.message_user(request, f"{shipped} order(s) marked as shipped.")
    mark_as_shipped.short_description = "Mark paid orders as shipped"
