from django.contrib import admin

from modules.restaurants.models import Restaurant


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "status", "offers_delivery", "offers_pickup"]
    list_filter = ["status", "offers_delivery", "offers_pickup"]
    search_fields = ["name", "email"]
