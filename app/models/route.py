"""
Route Domain Model

This module defines the typed entities exchanged between the routing
provider, the forecast provider and the route risk engine. They are plain,
immutable dataclasses: provider JSON is parsed into them once at the client
boundary, with an explicit default for every optional field.

Entities:
- Coordinate: latitude/longitude value type
- NavigationStep: one turn-by-turn instruction
- RouteCandidate: one alternative returned by the routing provider
- WeatherSample: weather at a point for a projected time of day
- WeatherAlert: a hazardous WeatherSample pinned to a checkpoint
- AnalyzedRoute: a RouteCandidate annotated with its weather risk

Author: RainSafe Project
License: AGPL-3.0
"""

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    @classmethod
    def from_lonlat(cls, value: Any) -> "Coordinate":
        """Parse an optional GeoJSON [lon, lat] pair, defaulting to (0, 0)."""
        if isinstance(value, (list, tuple)) and len(value) >= 2:
            try:
                return cls(latitude=float(value[1]), longitude=float(value[0]))
            except (TypeError, ValueError):
                pass
        return cls(0.0, 0.0)

    @classmethod
    def parse_lonlat(cls, value: Any) -> "Coordinate":
        """
        Parse a GeoJSON [lon, lat] pair strictly.

        Raises:
            ValueError: if the value is not a numeric pair within WGS84 bounds.
        """
        if not isinstance(value, (list, tuple)) or len(value) < 2:
            raise ValueError(f"invalid coordinate pair: {value!r}")
        try:
            lon, lat = float(value[0]), float(value[1])
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid coordinate pair: {value!r}") from e
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise ValueError(f"coordinate out of range: {value!r}")
        return cls(latitude=lat, longitude=lon)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


class ManeuverKind(str, enum.Enum):
    STRAIGHT = "straight"
    TURN_LEFT = "turn-left"
    TURN_RIGHT = "turn-right"
    MERGE = "merge"
    ARRIVE = "arrive"
    OTHER = "other"

    @classmethod
    def parse(cls, maneuver_type: Optional[str], modifier: Optional[str] = None) -> "ManeuverKind":
        """
        Map an OSRM maneuver type/modifier onto the closed set.

        Missing or malformed data falls back to STRAIGHT.
        """
        if not maneuver_type or not isinstance(maneuver_type, str):
            return cls.STRAIGHT
        kind = maneuver_type.lower()
        side = (modifier or "").lower() if isinstance(modifier, str) else ""

        if kind in ("depart", "continue", "new name", "straight"):
            if "left" in side:
                return cls.TURN_LEFT
            if "right" in side:
                return cls.TURN_RIGHT
            return cls.STRAIGHT
        if kind == "arrive":
            return cls.ARRIVE
        if kind in ("merge", "on ramp", "off ramp", "fork"):
            return cls.MERGE
        if kind in ("turn", "end of road", "roundabout", "rotary", "roundabout turn"):
            if "left" in side:
                return cls.TURN_LEFT
            if "right" in side:
                return cls.TURN_RIGHT
            return cls.STRAIGHT if "straight" in side or not side else cls.OTHER
        try:
            return cls(kind)
        except ValueError:
            return cls.OTHER


class RiskLevel(str, enum.Enum):
    SAFE = "Safe"
    # Reserved for partial-risk scoring; the current classifier never emits it.
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def color(self) -> str:
        if self is RiskLevel.HIGH:
            return "Red"
        if self is RiskLevel.MEDIUM:
            return "Orange"
        return "Green"


@dataclass(frozen=True)
class NavigationStep:
    instruction: str
    maneuver: ManeuverKind
    distance_m: float
    location: Coordinate

    @classmethod
    def from_osrm_json(cls, data: Dict[str, Any]) -> "NavigationStep":
        if not isinstance(data, dict):
            data = {}
        maneuver = data.get("maneuver")
        if not isinstance(maneuver, dict):
            maneuver = {}

        instruction = data.get("instruction") or _compose_instruction(data, maneuver)
        try:
            distance = float(data.get("distance") or 0.0)
        except (TypeError, ValueError):
            distance = 0.0

        return cls(
            instruction=str(instruction),
            maneuver=ManeuverKind.parse(maneuver.get("type"), maneuver.get("modifier")),
            distance_m=distance,
            location=Coordinate.from_lonlat(maneuver.get("location")),
        )


def _compose_instruction(step: Dict[str, Any], maneuver: Dict[str, Any]) -> str:
    # OSRM does not return instruction text; build a short one from the maneuver.
    kind = maneuver.get("type")
    modifier = maneuver.get("modifier")
    road = step.get("name") or ""
    if not isinstance(kind, str):
        return "Continue"
    if kind == "arrive":
        return "Arrive at destination"
    verb = kind.capitalize()
    if isinstance(modifier, str) and modifier:
        verb = f"{verb} {modifier}"
    return f"{verb} onto {road}" if road else verb


@dataclass(frozen=True)
class RouteCandidate:
    points: Tuple[Coordinate, ...]
    distance_m: float
    duration_s: float
    steps: Tuple[NavigationStep, ...] = ()

    @classmethod
    def from_osrm_json(cls, data: Dict[str, Any]) -> "RouteCandidate":
        """
        Parse one entry of an OSRM `routes` array.

        Raises:
            ValueError: if the geometry is missing, not a coordinate list, or
                holds an entry that is not a valid [lon, lat] pair.
        """
        geometry = data.get("geometry")
        coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not isinstance(coords, list):
            raise ValueError("route has no usable geometry")

        legs = data.get("legs")
        raw_steps = []
        if isinstance(legs, list) and legs and isinstance(legs[0], dict):
            raw_steps = legs[0].get("steps") or []

        return cls(
            points=tuple(Coordinate.parse_lonlat(c) for c in coords),
            distance_m=float(data.get("distance") or 0.0),
            duration_s=float(data.get("duration") or 0.0),
            steps=tuple(NavigationStep.from_osrm_json(s) for s in raw_steps),
        )

    @property
    def distance_km(self) -> str:
        return f"{self.distance_m / 1000:.1f} km"

    @property
    def duration_minutes(self) -> int:
        return round(self.duration_s / 60)


@dataclass(frozen=True)
class WeatherSample:
    weather_code: int
    temperature_c: float
    observed_at: datetime
    # Offset of the sampled location from UTC, as reported by the provider
    utc_offset_s: int = 0

    @property
    def local_time(self) -> datetime:
        """observed_at in the location's own time zone (naive values pass through)."""
        if self.observed_at.tzinfo is None:
            return self.observed_at
        return self.observed_at.astimezone(timezone(timedelta(seconds=self.utc_offset_s)))

    @property
    def clock(self) -> str:
        """Local time of day as H:MM."""
        local = self.local_time
        return f"{local.hour}:{local.minute:02d}"

    def at(self, when: datetime) -> "WeatherSample":
        return replace(self, observed_at=when)


@dataclass(frozen=True)
class WeatherAlert:
    point: Coordinate
    sample: WeatherSample
    description: str


@dataclass(frozen=True)
class AnalyzedRoute:
    route: RouteCandidate
    is_hazardous: bool
    risk_level: RiskLevel
    alerts: Tuple[WeatherAlert, ...] = field(default_factory=tuple)
    # Checkpoints whose forecast could not be fetched
    unknown_checkpoints: int = 0

    @property
    def duration_s(self) -> float:
        return self.route.duration_s

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_m": self.route.distance_m,
            "distance_km": self.route.distance_km,
            "duration_s": self.route.duration_s,
            "duration_minutes": self.route.duration_minutes,
            "is_hazardous": self.is_hazardous,
            "risk_level": self.risk_level.value,
            "risk_color": self.risk_level.color,
            "unknown_checkpoints": self.unknown_checkpoints,
            "points": [[p.latitude, p.longitude] for p in self.route.points],
            "steps": [
                {
                    "instruction": s.instruction,
                    "maneuver": s.maneuver.value,
                    "distance_m": s.distance_m,
                    "location": [s.location.latitude, s.location.longitude],
                }
                for s in self.route.steps
            ],
            "alerts": [
                {
                    "point": [a.point.latitude, a.point.longitude],
                    "weather_code": a.sample.weather_code,
                    "description": a.description,
                    "temperature_c": a.sample.temperature_c,
                    "time": a.sample.clock,
                    "arrival": a.sample.local_time.isoformat(),
                }
                for a in self.alerts
            ],
        }

