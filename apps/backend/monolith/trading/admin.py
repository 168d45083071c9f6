from django.contrib import admin
from trading.models import Stock, Wallet, Holding, Order

admin.site.register(Stock)
admin.site.register(Wallet)
admin.site.register(Holding)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Orders are immutable; the admin is read-only."""
    list_display = ('id', 'user', 'stock', 'side', 'quantity', 'price', 'total_amount', 'status', 'created_at')
    list_filter = ('side', 'stock')

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
