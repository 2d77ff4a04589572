# Reading services
from .schedule import (
    get_default_day,
    get_reading_for_day,
    get_full_schedule,
    get_plan_config,
    PlanConfig,
)
from .local_store import DatabaseLocalStore, LocalStore, MemoryLocalStore, WriteResult, WriteStatus, local_store_for_request
from .content_cache import ContentBundle, ContentCache, load_or_generate
from .generation import GenerationError, classify_error
from .sync import SyncRepository, repository_for_request
from .progress import RATINGS, toggle_status, complete_reading

__all__ = [
    'get_default_day',
    'get_reading_for_day',
    'get_full_schedule',
    'get_plan_config',
    'PlanConfig',
    'LocalStore',
    'MemoryLocalStore',
    'DatabaseLocalStore',
    'local_store_for_request',
    'WriteResult',
    'WriteStatus',
    'ContentBundle',
    'ContentCache',
    'load_or_generate',
    'GenerationError',
    'classify_error',
    'SyncRepository',
    'repository_for_request',
    'RATINGS',
    'toggle_status',
    'complete_reading',
]
