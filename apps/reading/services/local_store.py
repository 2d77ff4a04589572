"""
Per-client key/value storage with a capacity ceiling.

Mirrors browser storage semantics: one shared keyspace of strings, and
writes beyond the quota fail with a distinguishable result instead of
raising. Generated content, the progress mirror and diary mirrors all live
in the same keyspace, so eviction is restricted to the disposable cache
prefixes below.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Length

from apps.reading.models import LocalStoreEntry


logger = logging.getLogger(__name__)

DEFAULT_QUOTA = 5 * 1024 * 1024

CONTENT_CACHE_PREFIX = 'reading-cache-'
HEADER_IMAGE_PREFIX = 'header-sketch-'
JOURNEY_MAP_PREFIX = 'journey-map-'

DISPOSABLE_PREFIXES = (CONTENT_CACHE_PREFIX, HEADER_IMAGE_PREFIX, JOURNEY_MAP_PREFIX)

SESSION_MARKER = 'reading_local_store'


class WriteStatus(enum.Enum):
    OK = 'ok'
    QUOTA_EXCEEDED = 'quota_exceeded'
    FAILED = 'failed'


@dataclass(frozen=True)
class WriteResult:
    status: WriteStatus
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is WriteStatus.OK


OK = WriteResult(WriteStatus.OK)


class QuotaExceeded(Exception):
    """Raised internally by a store when a write would exceed its quota."""
    pass


def get_quota() -> int:
    return getattr(settings, 'READING_LOCAL_STORE_QUOTA', DEFAULT_QUOTA)


class LocalStore:
    """
    Base class for local stores.

    Subclasses provide `get`, `keys`, `used_bytes`, `_write` and `_delete`.
    Every write touches exactly one key.
    """

    def __init__(self, quota: Optional[int] = None):
        self.quota = get_quota() if quota is None else quota

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def used_bytes(self, exclude: Optional[str] = None) -> int:
        raise NotImplementedError

    def _write(self, key: str, value: str):
        raise NotImplementedError

    def _delete(self, key: str):
        raise NotImplementedError

    def set(self, key: str, value: str) -> WriteResult:
        try:
            self._check_quota(key, value)
            self._write(key, value)
        except QuotaExceeded as e:
            return WriteResult(WriteStatus.QUOTA_EXCEEDED, e)
        except Exception as e:
            return WriteResult(WriteStatus.FAILED, e)
        return OK

    def remove(self, key: str):
        self._delete(key)

    def _check_quota(self, key: str, value: str):
        needed = self.used_bytes(exclude=key) + len(key) + len(value)
        if needed > self.quota:
            raise QuotaExceeded(f"Writing {key} needs {needed} of {self.quota} bytes")


class MemoryLocalStore(LocalStore):
    """In-process store, used by tests and management commands."""

    def __init__(self, quota: Optional[int] = None, initial: Optional[Dict[str, str]] = None):
        super().__init__(quota)
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def keys(self):
        return list(self.data.keys())

    def used_bytes(self, exclude=None):
        return sum(len(k) + len(v) for k, v in self.data.items() if k != exclude)

    def _write(self, key, value):
        self.data[key] = value

    def _delete(self, key):
        self.data.pop(key, None)


class DatabaseLocalStore(LocalStore):
    """
    Keyspace stored as one LocalStoreEntry row per key.

    Concurrent requests for the same client can only overwrite each other
    on the same key (last write wins); writes to other keys are untouched.
    """

    def __init__(self, owner: str, quota: Optional[int] = None):
        super().__init__(quota)
        self.owner = owner

    def _entries(self):
        return LocalStoreEntry.objects.filter(owner=self.owner)

    def get(self, key):
        return self._entries().filter(key=key).values_list('value', flat=True).first()

    def keys(self):
        return list(self._entries().order_by('id').values_list('key', flat=True))

    def used_bytes(self, exclude=None):
        entries = self._entries()
        if exclude is not None:
            entries = entries.exclude(key=exclude)
        total = entries.aggregate(total=Sum(Length('key') + Length('value')))['total']
        return total or 0

    def _write(self, key, value):
        with transaction.atomic():
            LocalStoreEntry.objects.update_or_create(owner=self.owner, key=key, defaults={'value': value})

    def _delete(self, key):
        self._entries().filter(key=key).delete()


def session_owner(session) -> str:
    """Owner id for an anonymous visitor, creating the session if needed."""
    if not session.session_key:
        # Non-empty so the middleware sends the cookie for this session
        session[SESSION_MARKER] = True
        session.save()
    return f"session:{session.session_key}"


def user_owner(user) -> str:
    return f"user:{user.pk}"


def local_store_for_request(request) -> DatabaseLocalStore:
    """
    The requesting client's local store.

    Signed-in users get one store per account, so token clients without a
    cookie jar still hit their cache; anonymous visitors get one per session.
    """
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return DatabaseLocalStore(user_owner(user))
    return DatabaseLocalStore(session_owner(request.session))


def is_disposable(key: str) -> bool:
    return key.startswith(DISPOSABLE_PREFIXES)


def evict_disposable_caches(store: LocalStore) -> List[str]:
    """
    Remove every generated-content cache entry.

    Never touches status, archive, diary or auth keys.

    Returns:
        list of removed keys
    """
    removed = [key for key in store.keys() if is_disposable(key)]
    for key in removed:
        store.remove(key)
    return removed


def write_with_eviction(store: LocalStore, key: str, value: str) -> WriteResult:
    """
    Write a value, making room by clearing disposable caches when full.

    On a quota failure the disposable caches are evicted and the write is
    retried exactly once. A second failure is logged and returned; callers
    keep whatever value they already hold in memory.
    """
    result = store.set(key, value)
    if result.ok:
        return result

    if result.status is not WriteStatus.QUOTA_EXCEEDED:
        logger.error(f"Local store write for {key} failed: {result.error}")
        return result

    removed = evict_disposable_caches(store)
    logger.warning(f"Local store quota exceeded writing {key}, evicted {len(removed)} cached items")

    retry = store.set(key, value)
    if not retry.ok:
        logger.error(f"Local store still full after clearing caches, dropped write for {key}: {retry.error}")
    return retry
