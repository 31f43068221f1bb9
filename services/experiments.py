from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from data.database import ABTest, Variant, BarEvent
from models.events import EventCreate, VALID_EVENT_TYPES
from models.experiments import VariantResponse
from context import shop_scope
from config import config
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

DEFAULT_TEST_NAME = "Initial Free Shipping Bar Test"

# Created in this order, so "A" (the control) always gets the lowest id
DEFAULT_VARIANTS = [
    ("A", {"color": "#4CAF50", "text": "Free shipping over $50"}),
    ("B", {"color": "#2196F3", "text": "Limited Time: Free Shipping!"}),
    ("C", {"color": "#FF9800", "text": "Get Free Shipping Today"}),
]


class ABTestCreationError(RuntimeError):
    """Raised when a shop's experiment can neither be created nor found."""


class InvalidEventError(ValueError):
    """Raised when an event has an unknown type or a variant outside the shop."""


def get_ab_test(db: Session, shop: str) -> ABTest | None:
    """ Get the shop's experiment from database """
    return db.query(ABTest).filter(ABTest.shop == shop).first()


# --- Experiment Creation ---
def create_ab_test(db: Session, shop: str) -> ABTest:
    """Creates the default experiment and its A/B/C variants for a shop."""
    db_test = ABTest(shop=shop, name=DEFAULT_TEST_NAME)
    db.add(db_test)
    db.flush() # Flush to get the experiment ID. The unique constraint on shop is enforced here

    for name, variant_config in DEFAULT_VARIANTS:
        db.add(Variant(ab_test_id=db_test.id, name=name, config=dict(variant_config)))

    db.commit()
    db.refresh(db_test)
    logger.info("create new experiment %s success with experiment id: %s", db_test.name, db_test.id)
    return db_test


# --- Idempotent Bootstrap ---
def get_or_create_ab_test(db: Session, shop: str) -> ABTest:
    """
    Retrieves the shop's experiment or creates it on first use,
    safely handling concurrent first-time requests using the Unique Constraint + Retry pattern.
    """
    with shop_scope(shop):
        existing_test = get_ab_test(db, shop)
        if existing_test:
            logger.debug("Found experiment %s for shop", existing_test.id)
            return existing_test

        try:
            return create_ab_test(db, shop)

        except IntegrityError:
            # A concurrent request created the experiment first.
            # Rollback the failed INSERT and read the winner's record once.
            db.rollback()
            logger.warning("RACE DETECTED: IntegrityError creating experiment for shop %s. Re-reading...", shop)

        except Exception as e:
            db.rollback()
            logger.exception("An unexpected error occurred creating the experiment for shop %s.", shop)
            raise ABTestCreationError(f"Unable to create experiment for shop {shop}.") from e

        existing_test = get_ab_test(db, shop)
        if not existing_test:
            logger.error("Experiment for shop %s missing after creation race.", shop)
            raise ABTestCreationError(f"Unable to create experiment for shop {shop}.")

        return existing_test


def list_variants(ab_test: ABTest) -> list[dict]:
    """Variant payload for the storefront: id, name and display config."""
    return [VariantResponse.model_validate(v).model_dump() for v in ab_test.variants]


def record_event(db: Session, shop: str, event_data: EventCreate) -> BarEvent:
    """
    Persist one storefront event for a variant of the shop's own experiment.
    Raises InvalidEventError for an unknown event type, or for a variant that
    does not exist or belongs to another shop.
    """
    with shop_scope(shop):
        if event_data.event_type not in VALID_EVENT_TYPES:
            logger.info("rejected event with invalid type %r", event_data.event_type)
            raise InvalidEventError(f"Invalid event type {event_data.event_type!r}.")

        variant = db.query(Variant).filter(Variant.id == event_data.variant_id).one_or_none()
        if not variant or not variant.ab_test or variant.ab_test.shop != shop:
            logger.info("rejected event for variant %s outside shop", event_data.variant_id)
            raise InvalidEventError(f"Invalid variant {event_data.variant_id}.")

        db_event = BarEvent(variant_id=variant.id, event_type=event_data.event_type)
        db.add(db_event)
        db.commit()
        db.refresh(db_event)
        logger.debug("recorded %s event for variant %s", db_event.event_type, db_event.variant_id)
        return db_event


def purge_expired_events(db: Session, retention_days: int | None = None, now: datetime | None = None) -> int:
    """Delete events older than the retention period and return how many were removed."""
    if retention_days is None:
        retention_days = config.event_retention_days
    if now is None:
        now = datetime.now(timezone.utc)

    cutoff = now - timedelta(days=retention_days)
    deleted = db.query(BarEvent).filter(BarEvent.created_at < cutoff).delete(synchronize_session=False)
    db.commit()
    logger.info("purged %d events older than %s (%d days)", deleted, cutoff, retention_days)
    return deleted
