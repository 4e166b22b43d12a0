"""
Activity stream helper.

Writes FeedItem rows for things users do in their network (joining a club,
picking a provider) and mirrors them to structured logs.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from glbiashara.models import FeedItem, FeedItemType

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    item_type: FeedItemType,
    user_id: Optional[int],
    title: str,
    content_id: Optional[int] = None,
    description: Optional[str] = None,
) -> FeedItem:
    """
    Add an activity item to the caller's transaction.

    Args:
        db: Database session
        item_type: Kind of item (e.g. FeedItemType.CONNECTION)
        user_id: User the activity belongs to
        title: Short headline shown in the feed
        content_id: Id of the provider/club/institution/product concerned
        description: Optional longer text

    Note: This function does NOT commit the transaction. The caller should commit.
    It does flush() so the item gets an id and fails inside the caller's
    try block if the database rejects it.
    """
    item = FeedItem(
        type=item_type.value,
        content_id=content_id,
        user_id=user_id,
        title=title,
        description=description,
        is_active=True,
    )
    db.add(item)
    db.flush()

    logger.info(
        "activity_logged",
        extra={
            "item_type": item_type.value,
            "user_id": user_id,
            "content_id": content_id,
            "feed_item_id": item.id,
        },
    )
    return item
