from django.contrib import admin
from .models import ArchivedReading, LocalStoreEntry, MeditationLog, MeditationStatus, MissionPlan


@admin.register(MeditationStatus)
class MeditationStatusAdmin(admin.ModelAdmin):
    list_display = ['user', 'rated_days', 'updated_at']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['updated_at']

    def rated_days(self, obj):
        return len(obj.status_record or {})


@admin.register(ArchivedReading)
class ArchivedReadingAdmin(admin.ModelAdmin):
    list_display = ['user', 'day', 'created_at']
    list_filter = ['day']
    search_fields = ['user__username', 'user__email']
    ordering = ['user', 'day']


class LogEntryAdmin(admin.ModelAdmin):
    list_display = ['user', 'storage_key', 'created_at']
    search_fields = ['user__username', 'user__email', 'storage_key']
    date_hierarchy = 'created_at'


admin.site.register(MeditationLog, LogEntryAdmin)
admin.site.register(MissionPlan, LogEntryAdmin)


@admin.register(LocalStoreEntry)
class LocalStoreEntryAdmin(admin.ModelAdmin):
    list_display = ['owner', 'key', 'updated_at']
    search_fields = ['owner', 'key']
    readonly_fields = ['updated_at']
