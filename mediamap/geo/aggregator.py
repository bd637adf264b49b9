"""Location Aggregator: group media records into map markers."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

DEFAULT_MARKER_PRECISION = 3

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class LocationMarker:
    """One map marker: every record of a category within the same rounded cell."""

    latitude: float
    longitude: float
    category: str
    media: List[Any] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.media)


def _category_value(category: Any) -> str:
    return getattr(category, "value", category)


def _recency_key(record: Any) -> Tuple[datetime, int]:
    uploaded_at = record.uploaded_at or _EPOCH
    if uploaded_at.tzinfo is None:
        uploaded_at = uploaded_at.replace(tzinfo=timezone.utc)
    return uploaded_at, record.id or 0


def aggregate(
    records: Iterable[Any],
    category: Optional[str] = None,
    precision: int = DEFAULT_MARKER_PRECISION,
) -> List[LocationMarker]:
    """Group records by ``(round(lat), round(lng), category)``.

    Args:
        records: Objects exposing ``id``, ``latitude``, ``longitude``,
            ``category`` and ``uploaded_at`` (ORM rows or plain objects).
        category: Only keep this category; ``None`` or ``"all"`` keeps all.
        precision: Decimal places used for the marker cell.

    Returns:
        Markers sorted by count (descending), then latitude, longitude and
        category. Members of a marker are newest first. The result does not
        depend on the order of ``records``.
    """
    wanted = None if category in (None, "all") else _category_value(category)
    buckets: Dict[Tuple[float, float, str], List[Any]] = defaultdict(list)

    for record in records:
        record_category = _category_value(record.category)
        if wanted is not None and record_category != wanted:
            continue
        key = (
            round(record.latitude, precision),
            round(record.longitude, precision),
            record_category,
        )
        buckets[key].append(record)

    markers = [
        LocationMarker(
            latitude=lat,
            longitude=lng,
            category=cat,
            media=sorted(members, key=_recency_key, reverse=True),
        )
        for (lat, lng, cat), members in buckets.items()
    ]
    markers.sort(key=lambda m: (-m.count, m.latitude, m.longitude, m.category))
    return markers
