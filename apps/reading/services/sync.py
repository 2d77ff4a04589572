"""
Reading progress repository.

Every read and write of status, archive, diary and plan data goes through
SyncRepository. The backend is chosen on each call:

- no signed-in user: the client's local store only
- signed-in user: reads come from the database; writes go to the local
  mirror first and then to the database

Database operations are best-effort. Failures are logged and swallowed and
the local mirror stands in, so the database can drift from the local copy
while it keeps failing. There is no reconciliation beyond last-write-wins.
"""
import json
import logging
from typing import Callable, Dict, List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.reading.models import ArchivedReading, MeditationLog, MeditationStatus, MissionPlan

from .local_store import LocalStore, WriteResult, local_store_for_request, write_with_eviction


logger = logging.getLogger(__name__)

STATUS_KEY = 'meditation-status'
ARCHIVE_KEY = 'archived-readings'

RESERVED_KEYS = (STATUS_KEY, ARCHIVE_KEY)

ENTRY_MODELS = {
    'diary': MeditationLog,
    'plan': MissionPlan,
}


def _int_keys(record) -> Dict[int, object]:
    if not isinstance(record, dict):
        if record:
            logger.warning(f"Ignoring progress record of unexpected type {type(record).__name__}")
        return {}
    result = {}
    for key, value in record.items():
        try:
            result[int(key)] = value
        except (TypeError, ValueError):
            logger.warning(f"Skipping non-numeric day key {key!r}")
    return result


def _str_keys(record: Dict) -> Dict[str, object]:
    return {str(key): value for key, value in record.items()}


def format_entry_timestamp(created_at) -> str:
    return timezone.localtime(created_at).strftime('%I:%M %p')


class LocalBackend:
    """Reads and writes the local mirror."""

    def __init__(self, store: LocalStore):
        self.store = store

    def _load(self, key: str, default):
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable local data for {key}: {e}")
            return default
        if not isinstance(data, type(default)):
            logger.warning(f"Ignoring local data of unexpected type for {key}")
            return default
        return data

    def _save(self, key: str, data) -> WriteResult:
        return write_with_eviction(self.store, key, json.dumps(data, ensure_ascii=False))

    def read_status(self) -> Dict[int, str]:
        return _int_keys(self._load(STATUS_KEY, {}))

    def write_status(self, record: Dict[int, str]) -> WriteResult:
        return self._save(STATUS_KEY, _str_keys(record))

    def read_archive(self) -> Dict[int, Dict]:
        return _int_keys(self._load(ARCHIVE_KEY, {}))

    def write_archive(self, day: int, entry: Dict) -> WriteResult:
        archive = self.read_archive()
        archive[day] = entry
        return self._save(ARCHIVE_KEY, _str_keys(archive))

    def read_entries(self, kind: str, storage_key: str) -> List[Dict]:
        return self._load(storage_key, [])

    def write_entries(self, kind: str, storage_key: str, entries: List[Dict]) -> WriteResult:
        return self._save(storage_key, list(entries))


class RemoteBackend:
    """Reads and writes the signed-in user's rows. Never raises DatabaseError."""

    def __init__(self, user):
        self.user = user

    def read_status(self) -> Dict[int, str]:
        try:
            status = MeditationStatus.objects.get(user=self.user)
        except MeditationStatus.DoesNotExist:
            return {}
        except DatabaseError as e:
            logger.error(f"Error fetching meditation status for user {self.user.pk}: {e}")
            return {}
        return _int_keys(status.status_record)

    def write_status(self, record: Dict[int, str]):
        try:
            with transaction.atomic():
                MeditationStatus.objects.update_or_create(
                    user=self.user,
                    defaults={'status_record': _str_keys(record)},
                )
        except DatabaseError as e:
            logger.error(f"Error saving meditation status for user {self.user.pk}: {e}")

    def read_archive(self) -> Dict[int, Dict]:
        try:
            rows = list(ArchivedReading.objects.filter(user=self.user))
        except DatabaseError as e:
            logger.error(f"Error fetching archived readings for user {self.user.pk}: {e}")
            return {}
        return {row.day: row.content for row in rows if row.content}

    def write_archive(self, day: int, entry: Dict):
        try:
            with transaction.atomic():
                ArchivedReading.objects.update_or_create(
                    user=self.user,
                    day=day,
                    defaults={'content': entry, 'created_at': timezone.now()},
                )
        except DatabaseError as e:
            logger.error(f"Error saving archived reading for user {self.user.pk}, day {day}: {e}")

    def read_entries(self, kind: str, storage_key: str) -> List[Dict]:
        model = ENTRY_MODELS[kind]
        try:
            rows = list(
                model.objects.filter(user=self.user, storage_key=storage_key).order_by('-created_at', '-id')
            )
        except DatabaseError as e:
            logger.error(f"Error fetching {kind} entries for user {self.user.pk}: {e}")
            return []
        return [
            {
                'id': row.id,
                'timestamp': format_entry_timestamp(row.created_at),
                'content': row.content,
            }
            for row in rows
        ]

    def write_entries(self, kind: str, storage_key: str, entries: List[Dict]):
        # Only the newest entry is sent; the table is an append log
        if not entries:
            return
        latest = entries[0]
        model = ENTRY_MODELS[kind]
        try:
            with transaction.atomic():
                model.objects.create(
                    user=self.user,
                    storage_key=storage_key,
                    content=latest.get('content'),
                    created_at=timezone.now(),
                )
        except DatabaseError as e:
            logger.error(f"Error saving {kind} entry for user {self.user.pk}: {e}")


class SyncRepository:
    """
    Single entry point for progress data.

    `get_user` is called on every operation, so signing in or out takes
    effect immediately.
    """

    def __init__(self, store: LocalStore, get_user: Optional[Callable] = None):
        self.local = LocalBackend(store)
        self.get_user = get_user or (lambda: None)

    def remote(self) -> Optional[RemoteBackend]:
        user = self.get_user()
        if user is not None and getattr(user, 'is_authenticated', False):
            return RemoteBackend(user)
        return None

    def _reader(self):
        return self.remote() or self.local

    def read_status(self) -> Dict[int, str]:
        return self._reader().read_status()

    def write_status(self, record: Dict[int, str]):
        self.local.write_status(record)
        remote = self.remote()
        if remote:
            remote.write_status(record)

    def read_archive(self) -> Dict[int, Dict]:
        return self._reader().read_archive()

    def write_archive(self, day: int, entry: Dict):
        self.local.write_archive(day, entry)
        remote = self.remote()
        if remote:
            remote.write_archive(day, entry)

    def read_entries(self, kind: str, storage_key: str) -> List[Dict]:
        self._check_kind(kind)
        return self._reader().read_entries(kind, storage_key)

    def write_entries(self, kind: str, storage_key: str, entries: List[Dict]):
        self._check_kind(kind)
        self.local.write_entries(kind, storage_key, entries)
        remote = self.remote()
        if remote:
            remote.write_entries(kind, storage_key, entries)

    @staticmethod
    def _check_kind(kind: str):
        if kind not in ENTRY_MODELS:
            raise ValueError(f"Unknown entry kind: {kind}")


def repository_for_request(request) -> SyncRepository:
    return SyncRepository(local_store_for_request(request), lambda: request.user)
