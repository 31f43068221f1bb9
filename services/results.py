from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Iterable, Sequence
from models.events import EventCount
from models.results import VariantCounts, VariantStat
from data.database import ABTest, BarEvent
from services.stats import (
    CONTROL_VARIANT_NAME,
    compute_confidence,
    compute_lift,
    compute_status,
    conversion_rate,
)
from services.date_range import compute_date_range, get_date_range_label
from context import shop_scope
from config import config
import logging

logger = logging.getLogger(__name__)

IMPRESSION = "impression"
CONVERSION = "conversion"

# Event types accepted from the storefront, mapped to the bucket they count in.
# "add_to_cart" predates "conversion" and means the same thing.
EVENT_KIND_ALIASES = {
    "impression": IMPRESSION,
    "conversion": CONVERSION,
    "add_to_cart": CONVERSION,
}

DEFAULT_COLOR = "#4CAF50"


def fetch_event_counts(
    db: Session,
    variant_ids: Sequence[int],
    start_datetime: datetime | None = None,
    end_datetime: datetime | None = None,
) -> list[EventCount]:
    """
    Count events per (variant, event type) for all variants in a single grouped query.
    """
    if not variant_ids:
        return []

    count_query = db.query(
        BarEvent.variant_id,
        BarEvent.event_type,
        func.count(BarEvent.id).label('event_count')
    ).filter(
        BarEvent.variant_id.in_(variant_ids)
    )

    # Apply optional date filtering
    if start_datetime:
        logger.debug("fetch event counts from start_datetime %s", start_datetime)
        count_query = count_query.filter(BarEvent.created_at >= start_datetime)
    if end_datetime:
        count_query = count_query.filter(BarEvent.created_at <= end_datetime)

    rows = count_query.group_by(BarEvent.variant_id, BarEvent.event_type).all()
    return [EventCount(variant_id, event_type, count) for variant_id, event_type, count in rows]


def aggregate_event_counts(
    rows: Iterable[EventCount],
    variant_ids: Iterable[int] = (),
) -> dict[int, VariantCounts]:
    """
    Fold raw event rows into one VariantCounts per variant in a single pass.
    Every id in variant_ids is present, with zeros when it has no rows.
    Unknown event kinds are ignored.
    """
    counts_map: dict[int, VariantCounts] = {variant_id: VariantCounts() for variant_id in variant_ids}

    for variant_id, event_kind, count in rows:
        bucket = EVENT_KIND_ALIASES.get(event_kind)
        if bucket is None:
            logger.debug("ignoring unknown event kind %s for variant %s", event_kind, variant_id)
            continue

        counts = counts_map.setdefault(variant_id, VariantCounts())
        if bucket == IMPRESSION:
            counts.impressions += count
        else:
            counts.conversions += count

    return counts_map


def _variant_color(variant) -> str:
    return (variant.config or {}).get("color") or DEFAULT_COLOR


def compute_variant_stats(variants: Sequence, counts: dict[int, VariantCounts]) -> list[VariantStat]:
    """
    Build one VariantStat per variant, in the order the variants were given.

    The control is the variant named "A". Without one, the control baseline is
    all zeros and every lift and confidence degrades to 0.
    """
    control = next((v for v in variants if v.name == CONTROL_VARIANT_NAME), None)
    control_counts = counts.get(control.id, VariantCounts()) if control is not None else VariantCounts()
    if control is None:
        logger.warning("No control variant named %s among %d variants", CONTROL_VARIANT_NAME, len(variants))

    # Rounded like every variant rate, so equal proportions give a lift of exactly 0
    control_rate = round(conversion_rate(control_counts.conversions, control_counts.impressions), 2)

    stats: list[VariantStat] = []
    for v in variants:
        variant_counts = counts.get(v.id, VariantCounts())
        is_control = v.name == CONTROL_VARIANT_NAME

        rate = round(conversion_rate(variant_counts.conversions, variant_counts.impressions), 2)
        lift = compute_lift(rate, control_rate, is_control)
        confidence = 0.0 if is_control else compute_confidence(
            control_counts.impressions,
            control_counts.conversions,
            variant_counts.impressions,
            variant_counts.conversions,
        )

        stats.append(VariantStat(
            id=v.id,
            variant=v.name,
            color=_variant_color(v),
            visitors=variant_counts.impressions,
            conversions=variant_counts.conversions,
            conversion_rate=rate,
            lift=lift,
            confidence=confidence,
            status=compute_status(v.name, lift, confidence, variant_counts.impressions),
        ))

    return stats


def get_ab_test_stats(
    db: Session,
    test_id: int,
    start_datetime: datetime | None = None,
    end_datetime: datetime | None = None,
) -> list[VariantStat]:
    """
    Calculates per-variant statistics for an experiment, optionally limited to a time window.
    Returns an empty list when the experiment does not exist.
    """
    ab_test = db.query(ABTest).filter(ABTest.id == test_id).one_or_none()
    if not ab_test:
        logger.info("get_ab_test_stats: experiment %s not found", test_id)
        return []

    with shop_scope(ab_test.shop):
        variants = list(ab_test.variants)
        variant_ids = [v.id for v in variants]

        rows = fetch_event_counts(db, variant_ids, start_datetime, end_datetime)
        counts = aggregate_event_counts(rows, variant_ids)
        stats = compute_variant_stats(variants, counts)

        logger.info("computed stats for experiment %d: %d variants, %d count rows",
                    ab_test.id, len(stats), len(rows))
        return stats


def get_ab_test_stats_for_range(
    db: Session,
    test_id: int,
    range_key: str | None = None,
    now: datetime | None = None,
) -> list[VariantStat]:
    """Per-variant statistics over a named reporting window (e.g. 'last7', 'thisMonth')."""
    range_key = range_key or config.default_date_range
    date_range = compute_date_range(range_key, now=now)
    logger.debug("stats window %s: %s - %s", get_date_range_label(range_key), date_range.start, date_range.end)
    return get_ab_test_stats(db, test_id, date_range.start, date_range.end)
