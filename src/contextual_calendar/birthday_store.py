from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import date

from contextual_calendar.date_logic import matches_day
from contextual_calendar.kv_store import KeyValueStore
from contextual_calendar.models import BirthdayRecord

LOGGER = logging.getLogger(__name__)

BIRTHDAYS_KEY = "birthdaysKey"


class PersistenceError(RuntimeError):
    pass


class OutOfRangeError(IndexError):
    pass


class BirthdayStore:
    """Ordered birthday collection mirrored to a key-value store.

    Every mutation rewrites the whole collection before returning. A failed
    write leaves the in-memory change in place and raises ``PersistenceError``
    so callers can warn that it may not survive a restart.
    """

    def __init__(self, kv_store: KeyValueStore) -> None:
        self._kv_store = kv_store
        self._lock = threading.Lock()
        self._birthdays: list[BirthdayRecord] = self._load()

    @property
    def all_birthdays(self) -> list[BirthdayRecord]:
        return list(self._birthdays)

    def __len__(self) -> int:
        return len(self._birthdays)

    def _load(self) -> list[BirthdayRecord]:
        try:
            raw = self._kv_store.get(BIRTHDAYS_KEY)
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise ValueError(f"{BIRTHDAYS_KEY} must hold a list, got {type(raw).__name__}")
            return [BirthdayRecord.from_dict(row) for row in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            LOGGER.warning("Could not read saved birthdays, starting empty: %s", exc)
            return []

    def reload(self) -> None:
        with self._lock:
            self._birthdays = self._load()

    def _persist(self) -> None:
        payload = [record.to_dict() for record in self._birthdays]
        try:
            self._kv_store.set(BIRTHDAYS_KEY, payload)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.exception("Failed to save %s birthdays", len(payload))
            raise PersistenceError("Birthdays could not be saved") from exc

    def add(self, record: BirthdayRecord) -> None:
        with self._lock:
            self._birthdays.append(record)
            self._persist()
        LOGGER.info("Added birthday %s", record.id)

    def remove(self, offsets: Iterable[int]) -> None:
        with self._lock:
            targets = set(offsets)
            if not targets:
                return
            size = len(self._birthdays)
            invalid = sorted(offset for offset in targets if offset < 0 or offset >= size)
            if invalid:
                raise OutOfRangeError(f"Offsets {invalid} out of range for {size} birthdays")

            removed_ids = [self._birthdays[offset].id for offset in sorted(targets)]
            self._birthdays = [
                record for index, record in enumerate(self._birthdays) if index not in targets
            ]
            self._persist()
        LOGGER.info("Removed birthdays %s", ", ".join(removed_ids))

    def birthdays_on(self, day: date) -> list[BirthdayRecord]:
        return [record for record in self._birthdays if matches_day(record, day)]

    def has_birthday_on(self, day: date) -> bool:
        return any(matches_day(record, day) for record in self._birthdays)
