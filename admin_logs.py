import logging
from typing import Any, Dict, Optional

from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import now_utc
from schemas import Adminlog

logger = logging.getLogger(__name__)


def log_admin_action(
    db: Database,
    action: str,
    admin_email: Optional[str] = None,
    admin_uid: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Record an admin action. A failed write never aborts the action itself."""
    entry = Adminlog(
        action=action,
        admin_email=admin_email,
        admin_uid=admin_uid,
        metadata=metadata or {},
        timestamp=now_utc(),
    )
    try:
        db["adminlog"].insert_one(entry.model_dump())
    except PyMongoError:
        logger.exception("Could not record admin action %s", action)
        return
    logger.info("[Admin Log] %s by %s", action, admin_email or "unknown")
