import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

DEFAULT_QUALITY = 75
WEBP_CONTENT_TYPE = "image/webp"

DERIVATIVE_NAMESPACE = "img"
ORIGINAL_NAMESPACE = "original"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class RemoteURL:
    value: str

    kind = "url"


@dataclass(frozen=True)
class StoreKey:
    value: str

    kind = "r2"


ImageSource = Union[RemoteURL, StoreKey]


def classify_source(source: str) -> ImageSource:
    if source.startswith("http://") or source.startswith("https://"):
        return RemoteURL(source)
    return StoreKey(source)


def parse_int(value: Optional[str]) -> Optional[int]:
    """Lenient integer parse: leading digits win, anything else is None."""
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class TransformParams:
    width: Optional[int] = None
    quality: Optional[int] = DEFAULT_QUALITY

    @property
    def quality_in_range(self) -> bool:
        return self.quality is not None and 0 <= self.quality <= 100

    @classmethod
    def from_query(cls, width: Optional[str], quality: Optional[str]) -> "TransformParams":
        parsed_width = parse_int(width) if width else None
        if parsed_width is not None and parsed_width <= 0:
            parsed_width = None
        parsed_quality = parse_int(quality) if quality else DEFAULT_QUALITY
        return cls(width=parsed_width, quality=parsed_quality)


def _render(value: Optional[str]) -> str:
    return "null" if value is None else value


def derivative_cache_key(source: str, width: Optional[str], quality: Optional[str]) -> str:
    # Raw request strings are used so keys stay compatible with existing caches
    return f"{DERIVATIVE_NAMESPACE}:{source}:w={_render(width)}:q={_render(quality)}"


def original_cache_key(source: str) -> str:
    return f"{ORIGINAL_NAMESPACE}:{source}"


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"


@dataclass
class OptimizationResult:
    content: bytes
    cache_status: CacheStatus
    content_type: str = WEBP_CONTENT_TYPE
    original_size: Optional[int] = None
    optimized_size: Optional[int] = None
    source_kind: str = "url"

    @property
    def savings_percent(self) -> Optional[float]:
        return savings_percent(self.original_size, self.optimized_size)


def savings_percent(original_size: Optional[int], optimized_size: Optional[int]) -> Optional[float]:
    if original_size is None or optimized_size is None:
        return None
    if original_size == 0:
        return 0.0
    return round((original_size - optimized_size) / original_size * 100, 2)


@dataclass
class OptimizationEvent:
    event_type: str  # optimization | cache_hit | cache_miss | error
    original_url: str
    source: str = "url"
    success: bool = True
    width: Optional[int] = None
    quality: Optional[int] = None
    original_size: Optional[int] = None
    optimized_size: Optional[int] = None
    processing_time_ms: Optional[int] = None
    cache_hit: Optional[bool] = None
    error: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def compression_ratio(self) -> Optional[int]:
        if self.original_size and self.optimized_size:
            return round((1 - self.optimized_size / self.original_size) * 100)
        return None

    def to_data(self) -> Dict[str, Any]:
        return {
            "eventType": self.event_type,
            "originalUrl": self.original_url,
            "width": self.width,
            "quality": self.quality,
            "originalSize": self.original_size,
            "optimizedSize": self.optimized_size,
            "processingTime": self.processing_time_ms,
            "success": self.success,
            "error": self.error,
            "cacheHit": self.cache_hit,
            "source": self.source,
            "referrer": self.referrer,
            "userAgent": self.user_agent,
            "compressionRatio": self.compression_ratio,
            **self.extra,
        }
