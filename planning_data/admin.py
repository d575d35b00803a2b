from django.contrib import admin
from .models import PlanningWatch, SearchRecord


@admin.register(SearchRecord)
class SearchRecordAdmin(admin.ModelAdmin):
    list_display = ("filter_key", "filter_type", "result_count", "created_at")
    list_filter = ("filter_type", "created_at")
    search_fields = ("filter_key",)
    readonly_fields = ("filter_key", "filter_type", "results", "created_at")

    @admin.display(description="Results")
    def result_count(self, obj):
        return len(obj.results or [])


@admin.register(PlanningWatch)
class PlanningWatchAdmin(admin.ModelAdmin):
    list_display = ("filter_value", "filter_type", "webhook_url", "active", "last_checked_at", "created_at")
    list_filter = ("filter_type", "active", "created_at")
    search_fields = ("filter_value", "webhook_url")
