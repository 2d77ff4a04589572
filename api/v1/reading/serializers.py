"""
Reading serializers for the Epistle Walk API.
"""
from rest_framework import serializers

from apps.reading.services.local_store import is_disposable
from apps.reading.services.progress import RATING_CHOICES, RATINGS
from apps.reading.services.schedule import LANGUAGES
from apps.reading.services.sync import RESERVED_KEYS


class LanguageSerializer(serializers.Serializer):
    """Language selection, from the query string or request body."""
    lang = serializers.ChoiceField(choices=LANGUAGES, default='ko')


class ScheduleItemSerializer(serializers.Serializer):
    day = serializers.IntegerField()
    reading = serializers.CharField()


class ScheduleSerializer(serializers.Serializer):
    default_day = serializers.IntegerField()
    total_days = serializers.IntegerField()
    items = ScheduleItemSerializer(many=True)


class ReadingSerializer(serializers.Serializer):
    book = serializers.CharField()
    chapter = serializers.IntegerField()


class DaySerializer(serializers.Serializer):
    day = serializers.IntegerField()
    readings = ReadingSerializer(many=True)
    reference = serializers.CharField()
    status = serializers.ChoiceField(choices=RATINGS, allow_null=True)
    is_archived = serializers.BooleanField()


class ContentBundleSerializer(serializers.Serializer):
    day = serializers.IntegerField()
    reference = serializers.CharField()
    cached = serializers.BooleanField()
    passage = serializers.CharField(allow_blank=True)
    guide_text = serializers.CharField(allow_blank=True)
    context_text = serializers.CharField(allow_blank=True)
    intention_text = serializers.CharField(allow_blank=True)
    image_prompt_seed = serializers.CharField(allow_blank=True)
    image_ref = serializers.CharField(allow_null=True)


class ToggleStatusSerializer(serializers.Serializer):
    rating = serializers.ChoiceField(choices=RATING_CHOICES)


class StatusRecordSerializer(serializers.Serializer):
    """A whole status record: {day: rating}."""
    status = serializers.DictField(child=serializers.ChoiceField(choices=RATINGS))

    def validate_status(self, value):
        record = {}
        for key, rating in value.items():
            try:
                day = int(key)
            except (TypeError, ValueError):
                raise serializers.ValidationError(f"Invalid day: {key}")
            if day < 1:
                raise serializers.ValidationError(f"Invalid day: {key}")
            record[day] = rating
        return record


class SavedEntrySerializer(serializers.Serializer):
    """One diary or plan entry; content is stored as given."""
    id = serializers.IntegerField()
    timestamp = serializers.CharField(allow_blank=True)
    content = serializers.JSONField()


class EntriesSerializer(serializers.Serializer):
    entries = SavedEntrySerializer(many=True)


def validate_storage_key(storage_key):
    """Storage keys share the local keyspace and must not shadow cache or progress keys."""
    if not storage_key or len(storage_key) > 200:
        raise serializers.ValidationError('Storage key must be 1-200 characters.')
    if storage_key in RESERVED_KEYS or is_disposable(storage_key):
        raise serializers.ValidationError(f"Storage key '{storage_key}' is reserved.")
    return storage_key


class JourneyMapSerializer(serializers.Serializer):
    lang = serializers.ChoiceField(choices=LANGUAGES, default='ko')
    title = serializers.CharField(max_length=200)
    cities = serializers.ListField(child=serializers.CharField(max_length=100), min_length=1)
