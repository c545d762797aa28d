"""
Domain records for plants, care events and the values derived from them.

Plant is the only mutable record: logging care moves its last-care
timestamps forward. Everything else is frozen and rebuilt on each
evaluation pass.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    DEFAULT_FERTILIZER_AMOUNT,
    DEFAULT_FERTILIZER_UNIT,
    DEFAULT_FERTILIZING_FREQUENCY_DAYS,
    DEFAULT_HUMIDITY_PREFERENCE,
    DEFAULT_TEMPERATURE_RANGE_F,
    DEFAULT_WATER_AMOUNT,
    DEFAULT_WATER_UNIT,
    DEFAULT_WATERING_FREQUENCY_DAYS,
)


class CareType(str, Enum):
    """Kinds of care a user can log."""
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    OTHER = "other"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    HEALTHY = "healthy"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"

    @property
    def is_degraded(self) -> bool:
        return self in (HealthStatus.POOR, HealthStatus.CRITICAL)


class CareStatusType(str, Enum):
    NEEDS_ACTION = "needs_action"
    ALL_SET = "all_set"


class CareActionType(str, Enum):
    LOG_WATER = "log_water"
    LOG_FERTILIZE = "log_fertilize"


class Surface(str, Enum):
    """UI contexts a coach suggestion can be shown on."""
    TODAY = "today"
    PLANT_DETAIL = "plant_detail"
    ANALYTICS = "analytics"


class GrowthTrend(str, Enum):
    ACCELERATING = "accelerating"
    STEADY = "steady"
    SLOWING = "slowing"
    DORMANT = "dormant"


def _parse_datetime(value) -> Optional[datetime]:
    """
    Parse a datetime value, handling ISO strings with Z timezone.

    Naive values are taken as UTC so they compare with aware timestamps.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _int_field(row: Dict[str, Any], key: str, default: int) -> int:
    """Stored integer, keeping 0 and negatives; default only when missing."""
    value = row.get(key)
    if value is None or value == "":
        return default
    return int(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Plant:
    """A tracked specimen and its care profile."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    nickname: str = ""
    scientific_name: str = ""
    family: str = ""
    common_names: List[str] = field(default_factory=list)
    location: str = ""

    watering_frequency_days: int = DEFAULT_WATERING_FREQUENCY_DAYS
    fertilizing_frequency_days: int = DEFAULT_FERTILIZING_FREQUENCY_DAYS
    recommended_water_amount: float = DEFAULT_WATER_AMOUNT
    water_unit: str = DEFAULT_WATER_UNIT
    recommended_fertilizer_amount: float = DEFAULT_FERTILIZER_AMOUNT
    fertilizer_unit: str = DEFAULT_FERTILIZER_UNIT
    light_level: str = "medium"
    humidity_preference: int = DEFAULT_HUMIDITY_PREFERENCE
    temperature_range: Tuple[int, int] = DEFAULT_TEMPERATURE_RANGE_F

    last_watered: Optional[datetime] = None
    last_fertilized: Optional[datetime] = None
    health_status: HealthStatus = HealthStatus.HEALTHY
    date_added: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.scientific_name or "Unnamed plant"

    def last_care(self, care_type: CareType) -> Optional[datetime]:
        if care_type == CareType.WATERING:
            return self.last_watered
        if care_type == CareType.FERTILIZING:
            return self.last_fertilized
        return None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Plant":
        """
        Build a Plant from a database row or JSON payload.

        Missing care-profile fields fall back to the defaults for a new plant.
        """
        temp_range = row.get("temperature_range") or DEFAULT_TEMPERATURE_RANGE_F
        status = row.get("health_status") or HealthStatus.HEALTHY.value
        kwargs = {
            "nickname": row.get("nickname") or "",
            "scientific_name": row.get("scientific_name") or "",
            "family": row.get("family") or "",
            "common_names": list(row.get("common_names") or []),
            "location": row.get("location") or "",
            "watering_frequency_days": _int_field(row, "watering_frequency_days", DEFAULT_WATERING_FREQUENCY_DAYS),
            "fertilizing_frequency_days": _int_field(row, "fertilizing_frequency_days", DEFAULT_FERTILIZING_FREQUENCY_DAYS),
            "recommended_water_amount": float(row.get("recommended_water_amount") or DEFAULT_WATER_AMOUNT),
            "water_unit": row.get("water_unit") or DEFAULT_WATER_UNIT,
            "recommended_fertilizer_amount": float(row.get("recommended_fertilizer_amount") or DEFAULT_FERTILIZER_AMOUNT),
            "fertilizer_unit": row.get("fertilizer_unit") or DEFAULT_FERTILIZER_UNIT,
            "light_level": row.get("light_level") or "medium",
            "humidity_preference": int(row.get("humidity_preference") or DEFAULT_HUMIDITY_PREFERENCE),
            "temperature_range": (int(temp_range[0]), int(temp_range[1])),
            "last_watered": _parse_datetime(row.get("last_watered")),
            "last_fertilized": _parse_datetime(row.get("last_fertilized")),
            "health_status": HealthStatus(status),
            "date_added": _parse_datetime(row.get("date_added") or row.get("created_at")),
        }
        if row.get("id"):
            kwargs["id"] = str(row["id"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "nickname": self.nickname,
            "scientific_name": self.scientific_name,
            "family": self.family,
            "common_names": list(self.common_names),
            "location": self.location,
            "watering_frequency_days": self.watering_frequency_days,
            "fertilizing_frequency_days": self.fertilizing_frequency_days,
            "recommended_water_amount": self.recommended_water_amount,
            "water_unit": self.water_unit,
            "recommended_fertilizer_amount": self.recommended_fertilizer_amount,
            "fertilizer_unit": self.fertilizer_unit,
            "light_level": self.light_level,
            "humidity_preference": self.humidity_preference,
            "temperature_range": list(self.temperature_range),
            "last_watered": _iso(self.last_watered),
            "last_fertilized": _iso(self.last_fertilized),
            "health_status": self.health_status.value,
            "date_added": _iso(self.date_added),
        }


@dataclass(frozen=True)
class CareEvent:
    """An immutable record of one care action."""

    plant_id: str
    care_type: CareType
    timestamp: datetime
    amount: Optional[float] = None
    unit: Optional[str] = None
    note: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CareEvent":
        amount = row.get("amount")
        kwargs = {
            "plant_id": str(row["plant_id"]),
            "care_type": CareType(row.get("care_type") or CareType.OTHER.value),
            "timestamp": _parse_datetime(row.get("timestamp")),
            "amount": float(amount) if amount is not None else None,
            "unit": row.get("unit"),
            "note": row.get("note"),
        }
        if row.get("id"):
            kwargs["id"] = str(row["id"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "plant_id": self.plant_id,
            "care_type": self.care_type.value,
            "timestamp": _iso(self.timestamp),
            "amount": self.amount,
            "unit": self.unit,
            "note": self.note,
        }


@dataclass(frozen=True)
class DueStatus:
    """When a care type is next due and how late it is."""

    next_due: Optional[datetime]
    is_due_today: bool
    is_overdue: bool
    days_overdue: int = 0
    never_logged: bool = False

    @property
    def needs_action(self) -> bool:
        return self.is_due_today or self.is_overdue


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature_c: float
    humidity: Optional[float] = None  # percent, 0-100
    precipitation_mm: float = 0.0
    recent_precipitation: bool = False
    conditions: str = ""
    location: Optional[str] = None
    observed_at: Optional[datetime] = None

    @property
    def temperature_f(self) -> float:
        return round((self.temperature_c * 9 / 5) + 32, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temp_c": self.temperature_c,
            "temp_f": self.temperature_f,
            "humidity": self.humidity,
            "precipitation_mm": self.precipitation_mm,
            "recent_precipitation": self.recent_precipitation,
            "conditions": self.conditions,
            "location": self.location,
            "observed_at": _iso(self.observed_at),
        }


@dataclass(frozen=True)
class CareRecommendation:
    amount: float
    unit: str
    multiplier: float
    interval_days: int
    interval_adjustment_days: int
    soil_check: str
    technique: str = ""
    weather_applied: bool = False
    weather_notes: Tuple[str, ...] = ()
    season: Optional[str] = None
    seasonal_note: str = ""
    seasonal_interval_days: Optional[int] = None

    @property
    def amount_text(self) -> str:
        return f"{self.amount:g}{self.unit}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "unit": self.unit,
            "multiplier": self.multiplier,
            "interval_days": self.interval_days,
            "interval_adjustment_days": self.interval_adjustment_days,
            "soil_check": self.soil_check,
            "technique": self.technique,
            "weather_applied": self.weather_applied,
            "weather_notes": list(self.weather_notes),
            "season": self.season,
            "seasonal_note": self.seasonal_note,
            "seasonal_interval_days": self.seasonal_interval_days,
        }


@dataclass(frozen=True)
class FertilizerRecommendation:
    amount: float
    unit: str
    frequency_days: int

    @property
    def amount_text(self) -> str:
        return f"{self.amount:g}{self.unit}"


@dataclass(frozen=True)
class CareCTA:
    action_type: CareActionType
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"action_type": self.action_type.value, "label": self.label}


@dataclass(frozen=True)
class CareState:
    """What a single plant needs right now."""

    plant_id: str
    status_type: CareStatusType
    title: str
    subtitle: str
    meta: Optional[str] = None
    ctas: Tuple[CareCTA, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plant_id": self.plant_id,
            "status_type": self.status_type.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "meta": self.meta,
            "ctas": [cta.to_dict() for cta in self.ctas],
        }


@dataclass(frozen=True)
class CoachSuggestion:
    """A time-bound recommendation generated by a coach rule. Never persisted."""

    title: str
    message: str
    reason: str
    surface: Surface
    expires_at: datetime
    plant_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "reason": self.reason,
            "plant_id": self.plant_id,
            "surface": self.surface.value,
            "expires_at": _iso(self.expires_at),
        }


@dataclass(frozen=True)
class GrowthMetrics:
    plant_id: str
    species: str
    growth_rate: float  # cm per month
    seasonal_variation: Dict[str, float]
    health_correlation: float
    care_impact: float
    maturity_estimate: timedelta
    trend: GrowthTrend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plant_id": self.plant_id,
            "species": self.species,
            "growth_rate": self.growth_rate,
            "seasonal_variation": dict(self.seasonal_variation),
            "health_correlation": self.health_correlation,
            "care_impact": self.care_impact,
            "maturity_estimate_days": self.maturity_estimate.days,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class EnvironmentalImpact:
    season: str
    avg_health_score: float
    stress_events: int
    optimal_conditions: Tuple[str, ...]
    recommendations: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "avg_health_score": self.avg_health_score,
            "stress_events": self.stress_events,
            "optimal_conditions": list(self.optimal_conditions),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class LocationAnalysis:
    location: str
    plant_count: int
    avg_health_score: float
    success_rate: float
    best_species: Tuple[str, ...]
    challenges: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "plant_count": self.plant_count,
            "avg_health_score": self.avg_health_score,
            "success_rate": self.success_rate,
            "best_species": list(self.best_species),
            "challenges": list(self.challenges),
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
