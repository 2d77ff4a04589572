"""
Cache-aside storage for generated reading content.

One bundle per (day, language) in the client's local store. A hit never
reaches the generation service; a miss always does, and the result is
written back. Concurrent misses for the same key are not de-duplicated:
both generate, both write, the last write wins.
"""
import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Callable, Dict, List, Optional, Tuple

from .local_store import CONTENT_CACHE_PREFIX, LocalStore, WriteResult, write_with_eviction
from .schedule import PlanConfig, get_reading_units_for_day, localize
from .scripture import verses_to_passage


logger = logging.getLogger(__name__)

# Canonical text source only carries the Korean translation
CANONICAL_TEXT_LANGUAGES = ('ko',)


@dataclass
class ContentBundle:
    passage: str
    guide_text: str
    context_text: str
    intention_text: str
    image_prompt_seed: str = ''
    image_ref: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'ContentBundle':
        """Build a bundle from stored data; raises ValueError on missing fields."""
        if not isinstance(data, dict):
            raise ValueError("Bundle data must be an object")
        values = {}
        for field in fields(cls):
            if field.name in data:
                values[field.name] = data[field.name]
            elif field.name in ('image_prompt_seed', 'image_ref'):
                continue
            else:
                raise ValueError(f"Bundle is missing {field.name}")
        return cls(**values)


class ContentCache:
    """Per (day, language) bundle cache over a LocalStore."""

    def __init__(self, store: LocalStore):
        self.store = store

    @staticmethod
    def key(day: int, language: str) -> str:
        return f"{CONTENT_CACHE_PREFIX}day-{day}-{language}"

    def get(self, day: int, language: str) -> Optional[ContentBundle]:
        raw = self.store.get(self.key(day, language))
        if raw is None:
            return None
        try:
            return ContentBundle.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable cached content for day {day} ({language}): {e}")
            return None

    def put(self, day: int, language: str, bundle: ContentBundle) -> WriteResult:
        key = self.key(day, language)
        result = write_with_eviction(self.store, key, json.dumps(bundle.to_dict(), ensure_ascii=False))
        if not result.ok:
            logger.error(f"Content for day {day} ({language}) was not cached: {result.status.value}")
        return result


def fetch_canonical_passage(units, fetch_chapter: Callable[[str, int], List[Dict]]) -> str:
    """
    Canonical text for every chapter of the reading, or '' if any is missing.

    Failures are logged and treated as missing text.
    """
    chapters = []
    for unit in units:
        try:
            verses = fetch_chapter(unit.code, unit.chapter)
        except Exception as e:
            logger.warning(f"Canonical text fetch failed for {unit.code} {unit.chapter}: {e}")
            return ''
        if not verses:
            return ''
        chapters.append(verses_to_passage(verses))
    return '\n\n'.join(chapters)


def load_or_generate(
    day: int,
    language: str,
    cache: ContentCache,
    generator,
    fetch_chapter: Optional[Callable[[str, int], List[Dict]]] = None,
    config: Optional[PlanConfig] = None,
) -> Tuple[ContentBundle, bool]:
    """
    Return the content for a day, generating and caching it on a miss.

    Args:
        generator: object with generate_reading_content() and
            generate_context_image()
        fetch_chapter: canonical-text lookup, skipped when None

    Returns:
        (bundle, cached) where cached is True for a cache hit

    Raises:
        GenerationError (or whatever the generator raises) on failure;
        nothing is cached in that case.
    """
    cached = cache.get(day, language)
    if cached is not None:
        return cached, True

    units = get_reading_units_for_day(day, config)
    first, second = localize(units, language)

    canonical = ''
    if fetch_chapter is not None and language in CANONICAL_TEXT_LANGUAGES:
        canonical = fetch_canonical_passage(units, fetch_chapter)

    content = generator.generate_reading_content(first.book, first.chapter, second.chapter, language)

    image_ref = None
    seed = content.get('image_prompt_seed') or ''
    if seed:
        image_ref = generator.generate_context_image(
            seed,
            language,
            fallback_context=content.get('intention_text') or '',
        )

    bundle = ContentBundle(
        passage=canonical or content.get('passage') or '',
        guide_text=content.get('guide_text') or '',
        context_text=content.get('context_text') or '',
        intention_text=content.get('intention_text') or '',
        image_prompt_seed=seed,
        image_ref=image_ref,
    )
    cache.put(day, language, bundle)
    logger.info(f"Generated content for day {day} ({language})")
    return bundle, False
