"""
Cached decorative images: the header background and journey maps.

Both are disposable; they share the eviction prefixes with the content cache.
"""
import logging
from typing import Callable, Optional, Sequence

from .generation import GenerationError
from .local_store import HEADER_IMAGE_PREFIX, JOURNEY_MAP_PREFIX, LocalStore, write_with_eviction


logger = logging.getLogger(__name__)

# Bump the version suffix to force regeneration after a prompt change
HEADER_IMAGE_KEY = f"{HEADER_IMAGE_PREFIX}bg-v2"

HEADER_IMAGE_PROMPT = (
    "A minimalist pencil sketch of an ancient Mediterranean harbor at dawn, "
    "the silhouette of a traveler with a staff on a hill, wide landscape, "
    "muted tones, no text."
)


def journey_map_key(journey_id: int, language: str) -> str:
    return f"{JOURNEY_MAP_PREFIX}{journey_id}-{language}"


def journey_map_prompt(title: str, cities: Sequence[str]) -> str:
    route = ' -> '.join(cities)
    return (
        f"An antique hand-drawn map of the eastern Mediterranean showing {title}. "
        f"Trace the route {route} with a dotted line and mark each city. Parchment style."
    )


def get_or_generate_image(store: LocalStore, key: str, generate: Callable[[], Optional[str]]) -> Optional[str]:
    """
    Return the cached image URI for key, generating it on a miss.

    Generation failures are logged and yield None; nothing is cached then.
    """
    cached = store.get(key)
    if cached:
        return cached

    try:
        image = generate()
    except GenerationError as e:
        logger.error(f"Failed to generate image {key}: {e}")
        return None

    if not image:
        return None

    write_with_eviction(store, key, image)
    return image


def get_header_image(store: LocalStore, client) -> Optional[str]:
    return get_or_generate_image(store, HEADER_IMAGE_KEY, lambda: client.generate_image(HEADER_IMAGE_PROMPT))


def get_journey_map(store: LocalStore, client, journey_id: int, language: str, title: str, cities: Sequence[str]) -> Optional[str]:
    key = journey_map_key(journey_id, language)
    return get_or_generate_image(store, key, lambda: client.generate_image(journey_map_prompt(title, cities)))
