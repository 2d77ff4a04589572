"""
Daily progress: tri-state ratings and completed-reading archives.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from django.utils import timezone

from .content_cache import ContentBundle
from .schedule import DailyReading, format_reading


logger = logging.getLogger(__name__)

RATING_GOOD = 'good'
RATING_OK = 'ok'
RATING_BAD = 'bad'

RATINGS = (RATING_GOOD, RATING_OK, RATING_BAD)

RATING_CHOICES = [
    (RATING_GOOD, 'Good'),
    (RATING_OK, 'Okay'),
    (RATING_BAD, 'Bad'),
]


def toggle_status(record: Dict[int, str], day: int, rating: str) -> Dict[int, str]:
    """
    Apply a rating to a day and return the new record.

    Choosing the rating a day already has clears it.
    """
    if rating not in RATINGS:
        raise ValueError(f"Unknown rating: {rating}")
    updated = dict(record)
    if updated.get(day) == rating:
        del updated[day]
    else:
        updated[day] = rating
    return updated


def build_archive_entry(
    day: int,
    reading: DailyReading,
    bundle: ContentBundle,
    language: str,
    saved_at: Optional[datetime] = None,
) -> Dict:
    """Snapshot of a day's full content, as stored in the archive."""
    saved_at = saved_at or timezone.now()
    return {
        'day': day,
        'saved_at': saved_at.isoformat(),
        'reading_reference': format_reading(reading, language),
        'passage': bundle.passage,
        'guide_text': bundle.guide_text,
        'context_text': bundle.context_text,
        'intention_text': bundle.intention_text,
        'image_ref': bundle.image_ref,
    }


def set_status(repo, day: int, rating: str) -> Dict[int, str]:
    """Toggle a day's rating through the repository and return the new record."""
    record = toggle_status(repo.read_status(), day, rating)
    repo.write_status(record)
    return record


def complete_reading(repo, day: int, reading: DailyReading, bundle: ContentBundle, language: str) -> Dict:
    """
    Archive a day's content and mark the day as good.

    Completing a day again overwrites its archive entry; a day already rated
    good keeps its rating.

    Returns:
        the archived entry
    """
    entry = build_archive_entry(day, reading, bundle, language)
    repo.write_archive(day, entry)

    status = repo.read_status()
    if status.get(day) != RATING_GOOD:
        status = toggle_status(status, day, RATING_GOOD)
        repo.write_status(status)

    logger.info(f"Completed reading for day {day}")
    return entry
