"""
Care stores: where plants and care events live.

Provides:
- CareStore: the read interface the services consume
  (list_plants, get_plant, list_care_events) plus the write operations
  used by the "log care" action and plant management.
- InMemoryCareStore: process-local store (dev, tests, CLI demos).
- SupabaseCareStore: reads/writes the `plants` and `care_events` tables.

Deleting a plant deletes its care events. Logging care creates an
immutable CareEvent and moves the plant's last-care timestamp forward
(never backwards, so back-dated entries don't hide newer care).
"""

from __future__ import annotations
import threading
from datetime import datetime
from typing import Dict, List, Optional

from flask import current_app, has_app_context
from supabase import Client, create_client

from ..models import CareEvent, CareType, Plant, utc_now


class PlantNotFound(LookupError):
    """Raised when a plant id does not resolve to a stored plant."""


class CareStoreError(Exception):
    """Raised when a write to the backing store fails."""


def _safe_log_error(message: str) -> None:
    """
    Log error message only if Flask app context is available.

    This allows store functions to be called from tests without app context.
    """
    try:
        if has_app_context():
            current_app.logger.error(message)
    except RuntimeError:
        pass


def default_care_note(care_type: CareType, amount: Optional[float], unit: Optional[str]) -> Optional[str]:
    """Note attached to quick-logged care when the user gave none."""
    if care_type == CareType.WATERING:
        if amount is not None:
            return f"Quick watering - {amount:g}{unit or ''}"
        return "Quick watering"
    if care_type == CareType.FERTILIZING:
        return "Quick fertilizing"
    return None


def _advance(plant: Plant, care_type: CareType, when: datetime) -> None:
    if care_type == CareType.WATERING:
        if plant.last_watered is None or when > plant.last_watered:
            plant.last_watered = when
    elif care_type == CareType.FERTILIZING:
        if plant.last_fertilized is None or when > plant.last_fertilized:
            plant.last_fertilized = when


class CareStore:
    """Interface for plant and care-event storage."""

    def list_plants(self) -> List[Plant]:
        raise NotImplementedError

    def get_plant(self, plant_id: str) -> Optional[Plant]:
        raise NotImplementedError

    def list_care_events(self, since: Optional[datetime] = None) -> List[CareEvent]:
        raise NotImplementedError

    def add_plant(self, plant: Plant) -> Plant:
        raise NotImplementedError

    def delete_plant(self, plant_id: str) -> None:
        raise NotImplementedError

    def log_care(
        self,
        plant_id: str,
        care_type: CareType,
        timestamp: Optional[datetime] = None,
        amount: Optional[float] = None,
        unit: Optional[str] = None,
        note: Optional[str] = None,
    ) -> CareEvent:
        raise NotImplementedError

    def require_plant(self, plant_id: str) -> Plant:
        plant = self.get_plant(plant_id)
        if plant is None:
            raise PlantNotFound(plant_id)
        return plant


class InMemoryCareStore(CareStore):
    """
    Thread-safe in-memory store.

    Reads return copies of the internal lists so callers work on a
    snapshot; plants keep insertion order.
    """

    def __init__(self, plants: Optional[List[Plant]] = None, events: Optional[List[CareEvent]] = None):
        self._lock = threading.Lock()
        self._plants: Dict[str, Plant] = {}
        self._events: List[CareEvent] = []
        for plant in plants or []:
            self._plants[plant.id] = plant
        for event in events or []:
            self._events.append(event)

    def list_plants(self) -> List[Plant]:
        with self._lock:
            return list(self._plants.values())

    def get_plant(self, plant_id: str) -> Optional[Plant]:
        with self._lock:
            return self._plants.get(plant_id)

    def list_care_events(self, since: Optional[datetime] = None) -> List[CareEvent]:
        with self._lock:
            events = [e for e in self._events if since is None or e.timestamp >= since]
        return sorted(events, key=lambda e: e.timestamp)

    def add_plant(self, plant: Plant) -> Plant:
        with self._lock:
            self._plants[plant.id] = plant
        return plant

    def delete_plant(self, plant_id: str) -> None:
        with self._lock:
            if self._plants.pop(plant_id, None) is None:
                raise PlantNotFound(plant_id)
            self._events = [e for e in self._events if e.plant_id != plant_id]

    def log_care(self, plant_id, care_type, timestamp=None, amount=None, unit=None, note=None) -> CareEvent:
        care_type = CareType(care_type)
        when = timestamp or utc_now()
        with self._lock:
            plant = self._plants.get(plant_id)
            if plant is None:
                raise PlantNotFound(plant_id)
            event = CareEvent(
                plant_id=plant_id,
                care_type=care_type,
                timestamp=when,
                amount=amount,
                unit=unit,
                note=note if note is not None else default_care_note(care_type, amount, unit),
            )
            self._events.append(event)
            _advance(plant, care_type, when)
        return event


class SupabaseCareStore(CareStore):
    """
    Supabase-backed store.

    Reads are best-effort: errors are logged and an empty result returned.
    Writes raise CareStoreError so the caller can report failure.

    Args:
        client: Supabase client (see from_config)
    """

    PLANTS_TABLE = "plants"
    EVENTS_TABLE = "care_events"

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_config(cls, config) -> Optional["SupabaseCareStore"]:
        url = config.get("SUPABASE_URL", "")
        key = config.get("SUPABASE_SERVICE_ROLE_KEY", "")
        if not url or not key:
            return None
        return cls(create_client(url, key))

    def list_plants(self) -> List[Plant]:
        try:
            response = (self.client
                        .table(self.PLANTS_TABLE)
                        .select("*")
                        .order("created_at")
                        .execute())
            return [Plant.from_row(row) for row in response.data or []]
        except Exception as e:
            _safe_log_error(f"Error fetching plants: {e}")
            return []

    def get_plant(self, plant_id: str) -> Optional[Plant]:
        try:
            response = (self.client
                        .table(self.PLANTS_TABLE)
                        .select("*")
                        .eq("id", plant_id)
                        .limit(1)
                        .execute())
            rows = response.data or []
            return Plant.from_row(rows[0]) if rows else None
        except Exception as e:
            _safe_log_error(f"Error getting plant {plant_id}: {e}")
            return None

    def list_care_events(self, since: Optional[datetime] = None) -> List[CareEvent]:
        try:
            query = self.client.table(self.EVENTS_TABLE).select("*")
            if since is not None:
                query = query.gte("timestamp", since.isoformat())
            response = query.order("timestamp").execute()
            return [CareEvent.from_row(row) for row in response.data or []]
        except Exception as e:
            _safe_log_error(f"Error fetching care events: {e}")
            return []

    def add_plant(self, plant: Plant) -> Plant:
        row = plant.to_dict()
        row.pop("display_name", None)
        try:
            response = self.client.table(self.PLANTS_TABLE).insert(row).execute()
        except Exception as e:
            raise CareStoreError(f"Failed to create plant: {e}") from e
        rows = response.data or []
        return Plant.from_row(rows[0]) if rows else plant

    def delete_plant(self, plant_id: str) -> None:
        if self.get_plant(plant_id) is None:
            raise PlantNotFound(plant_id)
        try:
            self.client.table(self.EVENTS_TABLE).delete().eq("plant_id", plant_id).execute()
            self.client.table(self.PLANTS_TABLE).delete().eq("id", plant_id).execute()
        except Exception as e:
            raise CareStoreError(f"Failed to delete plant {plant_id}: {e}") from e

    def log_care(self, plant_id, care_type, timestamp=None, amount=None, unit=None, note=None) -> CareEvent:
        care_type = CareType(care_type)
        plant = self.require_plant(plant_id)
        event = CareEvent(
            plant_id=plant_id,
            care_type=care_type,
            timestamp=timestamp or utc_now(),
            amount=amount,
            unit=unit,
            note=note if note is not None else default_care_note(care_type, amount, unit),
        )
        try:
            self.client.table(self.EVENTS_TABLE).insert(event.to_dict()).execute()
            _advance(plant, care_type, event.timestamp)
            update = {
                "last_watered": plant.last_watered.isoformat() if plant.last_watered else None,
                "last_fertilized": plant.last_fertilized.isoformat() if plant.last_fertilized else None,
            }
            self.client.table(self.PLANTS_TABLE).update(update).eq("id", plant_id).execute()
        except Exception as e:
            raise CareStoreError(f"Failed to log care for plant {plant_id}: {e}") from e
        return event
