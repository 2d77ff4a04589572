"""
Reading plan scheduler.

Expands the Pauline epistles into one unit per chapter and maps calendar
dates onto a cyclic two-chapters-a-day plan. Everything here is pure: the
anchor date and corpus are passed in through a PlanConfig so callers (and
tests) can supply their own.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone


LANGUAGES = ('ko', 'en')

# (localized name, canonical 3-letter code, chapter count), in reading order
PAULINE_EPISTLES = [
    ({'ko': '갈라디아서', 'en': 'Galatians'}, 'gal', 6),
    ({'ko': '데살로니가전서', 'en': '1 Thessalonians'}, 'th1', 5),
    ({'ko': '데살로니가후서', 'en': '2 Thessalonians'}, 'th2', 3),
    ({'ko': '고린도전서', 'en': '1 Corinthians'}, 'co1', 16),
    ({'ko': '고린도후서', 'en': '2 Corinthians'}, 'co2', 13),
    ({'ko': '로마서', 'en': 'Romans'}, 'rom', 16),
    ({'ko': '골로새서', 'en': 'Colossians'}, 'col', 4),
    ({'ko': '빌레몬서', 'en': 'Philemon'}, 'phm', 1),
    ({'ko': '에베소서', 'en': 'Ephesians'}, 'eph', 6),
    ({'ko': '빌립보서', 'en': 'Philippians'}, 'phi', 4),
    ({'ko': '디모데전서', 'en': '1 Timothy'}, 'ti1', 6),
    ({'ko': '디도서', 'en': 'Titus'}, 'tit', 3),
    ({'ko': '디모데후서', 'en': '2 Timothy'}, 'ti2', 4),
]

DEFAULT_ANCHOR_OFFSET_DAYS = 26


@dataclass(frozen=True)
class ReadingUnit:
    """One chapter of one work, with the work name in every language."""
    book: Tuple[Tuple[str, str], ...]
    code: str
    chapter: int

    def book_name(self, language: str) -> str:
        names = dict(self.book)
        if language not in names:
            raise ValueError(f"Unsupported language: {language}")
        return names[language]


class Reading(NamedTuple):
    book: str
    chapter: int


DailyReading = Tuple[Reading, Reading]


@dataclass(frozen=True)
class PlanConfig:
    anchor: date
    corpus: Tuple[ReadingUnit, ...]

    @property
    def total_days(self) -> int:
        return total_days_for(self.corpus)


def build_corpus(works: Sequence = PAULINE_EPISTLES) -> Tuple[ReadingUnit, ...]:
    """Expand (book, code, chapters) works into one unit per chapter, in order."""
    units = []
    for book, code, chapters in works:
        frozen_book = tuple(sorted(book.items()))
        for chapter in range(1, chapters + 1):
            units.append(ReadingUnit(book=frozen_book, code=code, chapter=chapter))
    return tuple(units)


def total_days_for(corpus: Sequence[ReadingUnit]) -> int:
    return math.ceil(len(corpus) / 2)


def day_number_for_date(for_date: date, anchor: date, total_days: int) -> int:
    """
    Map a calendar date onto the cyclic plan.

    Dates before the anchor all resolve to day 1.

    Returns:
        int in [1, total_days]
    """
    if isinstance(for_date, datetime):
        for_date = for_date.date()
    delta = (for_date - anchor).days
    if delta < 0:
        delta = 0
    return (delta % total_days) + 1


def reading_for_day(day: int, corpus: Sequence[ReadingUnit]) -> Tuple[ReadingUnit, ReadingUnit]:
    """Return the two units read on a day; indices wrap so any day is valid."""
    size = len(corpus)
    start = (2 * (day - 1)) % size
    return corpus[start], corpus[(start + 1) % size]


def localize(units: Sequence[ReadingUnit], language: str) -> DailyReading:
    first, second = units
    return (
        Reading(first.book_name(language), first.chapter),
        Reading(second.book_name(language), second.chapter),
    )


def _chapter_ref(book: str, chapter, language: str) -> str:
    if language == 'ko':
        return f"{book} {chapter}장"
    return f"{book} {chapter}"


def format_reading(reading: DailyReading, language: str) -> str:
    """
    Human-readable reference for a day's pair.

    Collapses to "Book a-b" when both chapters come from the same work,
    otherwise joins the two references with " & ".
    """
    first, second = reading
    if first.book == second.book:
        return _chapter_ref(first.book, f"{first.chapter}-{second.chapter}", language)
    return f"{_chapter_ref(first.book, first.chapter, language)} & {_chapter_ref(second.book, second.chapter, language)}"


def full_schedule(corpus: Sequence[ReadingUnit], language: str) -> List[Dict]:
    """Enumerate every day of one cycle with its display text."""
    schedule = []
    for day in range(1, total_days_for(corpus) + 1):
        reading = localize(reading_for_day(day, corpus), language)
        schedule.append({'day': day, 'reading': format_reading(reading, language)})
    return schedule


@lru_cache(maxsize=1)
def _process_anchor() -> date:
    # Fixed for the life of the process
    configured = getattr(settings, 'READING_PLAN_ANCHOR_DATE', None)
    if configured:
        return configured
    offset = getattr(settings, 'READING_PLAN_ANCHOR_OFFSET_DAYS', DEFAULT_ANCHOR_OFFSET_DAYS)
    return timezone.localdate() - timedelta(days=offset)


@lru_cache(maxsize=1)
def _default_corpus() -> Tuple[ReadingUnit, ...]:
    return build_corpus()


def get_plan_config() -> PlanConfig:
    return PlanConfig(anchor=_process_anchor(), corpus=_default_corpus())


def get_default_day(now: Optional[datetime] = None, config: Optional[PlanConfig] = None) -> int:
    """Day number for `now` (defaults to the current local date)."""
    config = config or get_plan_config()
    if now is None:
        today = timezone.localdate()
    elif isinstance(now, datetime):
        today = timezone.localtime(now).date() if timezone.is_aware(now) else now.date()
    else:
        today = now
    return day_number_for_date(today, config.anchor, config.total_days)


def get_reading_units_for_day(day: int, config: Optional[PlanConfig] = None) -> Tuple[ReadingUnit, ReadingUnit]:
    config = config or get_plan_config()
    return reading_for_day(day, config.corpus)


def get_reading_for_day(day: int, language: str, config: Optional[PlanConfig] = None) -> DailyReading:
    return localize(get_reading_units_for_day(day, config), language)


def get_full_schedule(language: str, config: Optional[PlanConfig] = None) -> List[Dict]:
    config = config or get_plan_config()
    return full_schedule(config.corpus, language)
