"""
User lookups needed by the insight engine.
"""

from relationship_engine.db.helpers import fetch_one, with_db_retry
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

logger = get_logger(__name__)


@with_db_retry(max_retries=3, base_delay=0.1)
async def get_user_email(user_id: str) -> str | None:
    """
    Resolve the operating user's own email address.

    Args:
        user_id: UUID string of the user

    Returns:
        The user's email, or None if the user is missing or inactive
    """
    row = await fetch_one(
        "SELECT email FROM users WHERE id = %s AND is_active = true",
        (user_id,),
    )
    if not row:
        logger.info("User not found or inactive", user_id=mask_id(user_id))
        return None
    return row.get("email")


async def is_own_email(user_id: str, email: str | None) -> bool:
    """True when email belongs to the operating user (case-insensitive)."""
    if not email:
        return False
    own_email = await get_user_email(user_id)
    return bool(own_email) and own_email.strip().lower() == email.strip().lower()
