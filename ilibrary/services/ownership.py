import logging
import threading
import weakref
from typing import Any, Dict, Optional

from .storage import DEFAULT_AUTHOR_BIO, GraphQLStorage

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
# an entry lives only while some caller holds its lock
_author_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()


def _lock_for(user_id: str) -> threading.Lock:
    with _locks_guard:
        lock = _author_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _author_locks[user_id] = lock
        return lock


def _owned_by(author: Optional[Dict[str, Any]], user_id: str) -> Optional[Dict[str, Any]]:
    if author is None:
        return None
    if str(author.get("user_id")) != str(user_id):
        logger.warning("author %s does not belong to user %s, ignoring", author.get("id"), user_id)
        return None
    return author


def resolve_author(storage: GraphQLStorage, user_id: str) -> Optional[Dict[str, Any]]:
    """Author record linked to ``user_id``, or None."""
    return _owned_by(storage.get_author_by_user_id(user_id), user_id)


def ensure_author_for_user(storage: GraphQLStorage, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Find the author record for ``user``, creating it on first need.

    Lookup and creation run under a per-user lock so two logins of the same
    new author in this process cannot create two rows. Other processes are
    not covered; only a unique ``user_id`` constraint upstream would do that.
    """
    user_id = str(user["id"])
    with _lock_for(user_id):
        author = storage.get_author_by_user_id(user_id)
        if author is None:
            email = user.get("email") or ""
            name = user.get("displayName") or email.split("@")[0] or "مؤلف"
            logger.info("creating author record for user %s", user_id)
            author = storage.create_author({
                "name": name,
                "bio": DEFAULT_AUTHOR_BIO,
                "book_num": 0,
                "image_url": None,
                "user_id": user_id,
            })
    return _owned_by(author, user_id)
