from datetime import datetime, timezone
from typing import Any, List, Optional

from llu_uploader.models.librelink import GlucoseItem, GraphData
from llu_uploader.models.nightscout import Entry, TrendDirection

FACTORY_TIMESTAMP_FORMAT = "%m/%d/%Y %I:%M:%S %p"

TREND_ARROWS = {
    1: TrendDirection.SINGLE_DOWN,
    2: TrendDirection.FORTY_FIVE_DOWN,
    3: TrendDirection.FLAT,
    4: TrendDirection.FORTY_FIVE_UP,
    5: TrendDirection.SINGLE_UP,
}


def parse_factory_timestamp(value: str) -> datetime:
    """Parse a LibreLink Up FactoryTimestamp (UTC, e.g. '6/30/2024 8:05:00 PM')."""
    return datetime.strptime(value.strip(), FACTORY_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def map_trend_arrow(value: Any) -> TrendDirection:
    """Map a LibreLink Up TrendArrow code to a Nightscout direction."""
    return TREND_ARROWS.get(value, TrendDirection.NOT_COMPUTABLE)


def _is_newer(item: GlucoseItem, watermark: Optional[datetime]) -> bool:
    return watermark is None or parse_factory_timestamp(item.factory_timestamp) > watermark


def format_measurements(graph: GraphData, last_entry: Optional[Entry]) -> List[Entry]:
    """
    Build the Nightscout entries that are strictly newer than *last_entry*.

    The current reading comes first and carries the trend direction; history
    points follow in upstream order without one. Without a last entry every
    reading is returned.
    """
    watermark = last_entry.date if last_entry is not None else None
    entries: List[Entry] = []

    current = graph.current
    if _is_newer(current, watermark):
        entries.append(Entry(
            date=parse_factory_timestamp(current.factory_timestamp),
            sgv=current.value_in_mg_per_dl,
            direction=map_trend_arrow(current.trend_arrow),
        ))

    for item in graph.graph_data:
        if _is_newer(item, watermark):
            entries.append(Entry(
                date=parse_factory_timestamp(item.factory_timestamp),
                sgv=item.value_in_mg_per_dl,
            ))

    return entries
