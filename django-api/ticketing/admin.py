from django.contrib import admin

from ticketing.models import LedgerEntry, Location, Session, Wallet


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ["name", "address", "hourly_rate_cents", "currency"]
    search_fields = ["name", "address"]


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ["reference_code", "user_id", "location_name", "start_time", "end_time", "status"]
    list_filter = ["status", "location_id"]
    search_fields = ["reference_code", "user_id"]


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ["user_id", "balance_cents", "entry_count"]
    search_fields = ["user_id"]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ["reference_code", "user_id", "kind", "amount_cents", "balance_after", "status"]
    list_filter = ["kind", "status"]
    search_fields = ["reference_code", "user_id"]
