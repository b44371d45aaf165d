"""
Data types shared across the lightning strike pipeline
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CalibrationBounds:
    """Geographic rectangle covered by the full source image"""
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        values = (self.north, self.south, self.east, self.west)
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"Calibration bounds must be finite: {self}")
        if self.north <= self.south:
            raise ValueError(f"north ({self.north}) must be greater than south ({self.south})")
        if self.east <= self.west:
            raise ValueError(f"east ({self.east}) must be greater than west ({self.west})")

    @classmethod
    def from_dict(cls, data: Dict) -> 'CalibrationBounds':
        return cls(
            north=float(data['north']),
            south=float(data['south']),
            east=float(data['east']),
            west=float(data['west'])
        )

    def contains(self, lat: float, lng: float) -> bool:
        """Inclusive on all four edges"""
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True)
class PixelFrame:
    """Pixel dimensions of the source image"""
    width: float
    height: float

    def __post_init__(self):
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"Pixel frame dimensions must be positive: {self}")

    @classmethod
    def from_dict(cls, data: Dict) -> 'PixelFrame':
        return cls(width=float(data['width']), height=float(data['height']))


@dataclass(frozen=True)
class RawMarker:
    pixel_x: float
    pixel_y: float
    age_bucket: int = 0


@dataclass(frozen=True)
class GeoStrike:
    lat: float
    lng: float
    age_minutes: int

    def to_dict(self) -> Dict:
        """Artifact shape: {lat, lng, age}"""
        return {'lat': self.lat, 'lng': self.lng, 'age': self.age_minutes}

    @classmethod
    def from_dict(cls, data: Dict) -> 'GeoStrike':
        return cls(lat=float(data['lat']), lng=float(data['lng']), age_minutes=int(data['age']))


class CycleState(Enum):
    IDLE = 'idle'
    FETCHING = 'fetching'
    PARSING = 'parsing'
    TRANSFORMING = 'transforming'
    FILTERING = 'filtering'
    SERIALIZED = 'serialized'
    FAILED = 'failed'


@dataclass
class CycleResult:
    """Outcome of one fetch -> parse -> transform -> filter -> serialize run"""
    cycle_id: int
    slug: str
    state: CycleState = CycleState.IDLE
    strikes: List[GeoStrike] = field(default_factory=list)
    total_markers: int = 0
    out_of_bounds: int = 0
    error: Optional[str] = None
    cancelled: bool = False
    source: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.state is CycleState.SERIALIZED

    @property
    def valid_count(self) -> int:
        return len(self.strikes)
