from django.db import models
from django.contrib.auth.models import User


class MeditationStatus(models.Model):
    """
    Per-day ratings for one user, stored as a single opaque record.

    The record maps day number (as a string key) to 'good', 'ok' or 'bad'.
    Writes replace the whole record; there is no merge.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='meditation_status'
    )
    status_record = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'meditation statuses'

    def __str__(self):
        return f"{self.user} - {len(self.status_record or {})} rated days"


class ArchivedReading(models.Model):
    """Frozen snapshot of a completed day's content. One per user and day."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='archived_readings'
    )
    day = models.PositiveIntegerField()
    content = models.JSONField(default=dict)
    created_at = models.DateTimeField()

    class Meta:
        ordering = ['day']
        constraints = [
            models.UniqueConstraint(fields=['user', 'day'], name='unique_archived_reading_per_day'),
        ]

    def __str__(self):
        return f"{self.user} - day {self.day}"


class LogEntry(models.Model):
    """
    Append-only log row keyed by a caller-supplied storage key.

    Each save from a client appends its newest entry; rows are never
    replaced.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE)
    storage_key = models.CharField(max_length=200)
    content = models.JSONField(default=dict)
    created_at = models.DateTimeField()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.storage_key} @ {self.created_at:%Y-%m-%d %H:%M}"


class MeditationLog(LogEntry):
    """Diary entries (repentance, resolve, dream)."""

    class Meta(LogEntry.Meta):
        indexes = [
            models.Index(fields=['user', 'storage_key', '-created_at'], name='meditation_log_user_key_idx'),
        ]
        default_related_name = 'meditation_logs'


class MissionPlan(LogEntry):
    """Evangelism plan entries."""

    class Meta(LogEntry.Meta):
        indexes = [
            models.Index(fields=['user', 'storage_key', '-created_at'], name='mission_plan_user_key_idx'),
        ]
        default_related_name = 'mission_plans'


class LocalStoreEntry(models.Model):
    """
    One key of a client's local store.

    `owner` is 'session:<session key>' for anonymous visitors and
    'user:<pk>' for signed-in users. Each key is its own row so a write
    only ever touches that key.
    """

    owner = models.CharField(max_length=100)
    key = models.CharField(max_length=255)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'local store entries'
        constraints = [
            models.UniqueConstraint(fields=['owner', 'key'], name='unique_local_store_key_per_owner'),
        ]

    def __str__(self):
        return f"{self.owner} - {self.key}"
