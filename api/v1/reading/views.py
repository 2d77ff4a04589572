"""
Reading views for the Epistle Walk API.

All endpoints work for anonymous visitors (progress lives in their session)
and for signed-in users (progress is also saved to their account).
"""
import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.reading.services.content_cache import ContentCache, load_or_generate
from apps.reading.services.generation import GenerationError, classify_error, get_generation_client
from apps.reading.services.images import get_header_image, get_journey_map
from apps.reading.services.local_store import local_store_for_request
from apps.reading.services.progress import complete_reading, set_status
from apps.reading.services.schedule import (
    format_reading,
    get_default_day,
    get_full_schedule,
    get_plan_config,
    get_reading_for_day,
)
from apps.reading.services.scripture import fetch_chapter
from apps.reading.services.sync import repository_for_request

from .serializers import (
    ContentBundleSerializer,
    DaySerializer,
    EntriesSerializer,
    JourneyMapSerializer,
    LanguageSerializer,
    ScheduleSerializer,
    StatusRecordSerializer,
    ToggleStatusSerializer,
    validate_storage_key,
)


logger = logging.getLogger(__name__)

LANG_PARAMETER = OpenApiParameter(name='lang', description='Language code (ko or en)', required=False)

ERROR_MESSAGES = {
    'api_quota_exceeded': 'The content service is busy. Please try again in a few minutes.',
    'content_error': 'Could not load the reading content. Please try again.',
}


def _language(data):
    serializer = LanguageSerializer(data={'lang': data.get('lang', 'ko')})
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data['lang']


def _invalid_day(day):
    if day < 1:
        return Response({'error': 'Day must be 1 or greater.'}, status=status.HTTP_400_BAD_REQUEST)
    return None


class BaseReadingView(APIView):
    permission_classes = [AllowAny]

    def local_store(self):
        return local_store_for_request(self.request)

    def repository(self):
        return repository_for_request(self.request)


class ScheduleView(BaseReadingView):
    """
    Full reading plan with today's day number.
    """

    @extend_schema(
        summary="Get the reading schedule",
        parameters=[LANG_PARAMETER],
        responses={200: ScheduleSerializer}
    )
    def get(self, request):
        language = _language(request.query_params)
        config = get_plan_config()

        return Response({
            'default_day': get_default_day(config=config),
            'total_days': config.total_days,
            'items': get_full_schedule(language, config=config),
        })


class DayView(BaseReadingView):
    """
    Readings for one day with the visitor's progress on it.
    """

    @extend_schema(
        summary="Get a day's readings",
        parameters=[LANG_PARAMETER],
        responses={200: DaySerializer}
    )
    def get(self, request, day):
        invalid = _invalid_day(day)
        if invalid:
            return invalid

        language = _language(request.query_params)
        reading = get_reading_for_day(day, language)
        repo = self.repository()

        data = {
            'day': day,
            'readings': [{'book': r.book, 'chapter': r.chapter} for r in reading],
            'reference': format_reading(reading, language),
            'status': repo.read_status().get(day),
            'is_archived': day in repo.read_archive(),
        }
        return Response(data)


class DayContentView(BaseReadingView):
    """
    Generated content for a day, served from the cache when available.
    """

    @extend_schema(
        summary="Get a day's content",
        description="Returns cached content or generates it. Generation can take a while on a cache miss.",
        parameters=[LANG_PARAMETER],
        responses={200: ContentBundleSerializer}
    )
    def get(self, request, day):
        invalid = _invalid_day(day)
        if invalid:
            return invalid

        language = _language(request.query_params)
        cache = ContentCache(self.local_store())

        try:
            bundle, cached = load_or_generate(
                day,
                language,
                cache,
                get_generation_client(),
                fetch_chapter=fetch_chapter,
            )
        except GenerationError as e:
            code = classify_error(e)
            logger.error(f"Content generation failed for day {day} ({language}): {e}")
            http_status = (
                status.HTTP_429_TOO_MANY_REQUESTS if code == 'api_quota_exceeded'
                else status.HTTP_502_BAD_GATEWAY
            )
            return Response({'code': code, 'error': ERROR_MESSAGES[code]}, status=http_status)

        reading = get_reading_for_day(day, language)
        data = {
            'day': day,
            'reference': format_reading(reading, language),
            'cached': cached,
            **bundle.to_dict(),
        }
        return Response(data)


class CompleteDayView(BaseReadingView):
    """
    Archive the day's content and mark it as good.
    """

    @extend_schema(
        summary="Complete a day's reading",
        request=LanguageSerializer,
    )
    def post(self, request, day):
        invalid = _invalid_day(day)
        if invalid:
            return invalid

        language = _language(request.data)
        bundle = ContentCache(self.local_store()).get(day, language)
        if bundle is None or not bundle.passage or not bundle.guide_text:
            return Response(
                {'error': 'Content for this day has not been loaded yet.'},
                status=status.HTTP_409_CONFLICT
            )

        repo = self.repository()
        reading = get_reading_for_day(day, language)
        entry = complete_reading(repo, day, reading, bundle, language)

        return Response({
            'archived': entry,
            'status': repo.read_status().get(day),
        }, status=status.HTTP_201_CREATED)


class StatusView(BaseReadingView):
    """
    The visitor's per-day ratings.
    """

    @extend_schema(summary="Get meditation status")
    def get(self, request):
        return Response({'status': self.repository().read_status()})

    @extend_schema(
        summary="Replace meditation status",
        request=StatusRecordSerializer,
    )
    def put(self, request):
        serializer = StatusRecordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = serializer.validated_data['status']
        self.repository().write_status(record)
        return Response({'status': record})


class StatusToggleView(BaseReadingView):
    """
    Toggle one day's rating. Sending the current rating clears it.
    """

    @extend_schema(
        summary="Toggle a day's rating",
        request=ToggleStatusSerializer,
    )
    def post(self, request, day):
        invalid = _invalid_day(day)
        if invalid:
            return invalid

        serializer = ToggleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        record = set_status(self.repository(), day, serializer.validated_data['rating'])
        return Response({'day': day, 'rating': record.get(day), 'status': record})


class ArchiveView(BaseReadingView):
    """
    All archived readings, keyed by day.
    """

    @extend_schema(summary="List archived readings")
    def get(self, request):
        return Response({'archive': self.repository().read_archive()})


class EntriesView(BaseReadingView):
    """
    Diary or plan entries stored under a storage key.
    """

    def _validate(self, kind, storage_key):
        if kind not in ('diary', 'plan'):
            return Response({'error': f"Unknown entry kind: {kind}"}, status=status.HTTP_404_NOT_FOUND)
        validate_storage_key(storage_key)
        return None

    @extend_schema(summary="Get saved entries")
    def get(self, request, kind, storage_key):
        invalid = self._validate(kind, storage_key)
        if invalid:
            return invalid
        return Response({'entries': self.repository().read_entries(kind, storage_key)})

    @extend_schema(
        summary="Save entries",
        description="Saves the full list (newest first) on this device; "
                    "signed-in users also get the newest entry added to their account history.",
        request=EntriesSerializer,
    )
    def put(self, request, kind, storage_key):
        invalid = self._validate(kind, storage_key)
        if invalid:
            return invalid

        serializer = EntriesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entries = serializer.validated_data['entries']

        self.repository().write_entries(kind, storage_key, entries)
        return Response({'entries': entries})


class HeaderImageView(BaseReadingView):
    """
    Decorative header background, generated once per device.
    """

    @extend_schema(summary="Get the header background image")
    def get(self, request):
        image = get_header_image(self.local_store(), get_generation_client())
        return Response({'image_ref': image})


class JourneyMapView(BaseReadingView):
    """
    Illustrated map for a mission journey, generated once per device and language.
    """

    @extend_schema(
        summary="Get a journey map",
        request=JourneyMapSerializer,
    )
    def post(self, request, journey_id):
        serializer = JourneyMapSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        image = get_journey_map(
            self.local_store(),
            get_generation_client(),
            journey_id,
            data['lang'],
            data['title'],
            data['cities'],
        )
        return Response({'image_ref': image})
