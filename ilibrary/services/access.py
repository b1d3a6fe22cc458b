import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


class Role(str, enum.Enum):
    user = "user"
    anonymous = "anonymous"
    me = "me"
    author = "author"
    admin = "admin"


class Dashboard(str, enum.Enum):
    admin = "admin"
    author = "author"


@dataclass
class AccessDecision:
    allowed: bool
    dashboard: Optional[Dashboard] = None
    roles: List[str] = field(default_factory=list)
    needs_author: bool = False


def roles_for_user(user: Dict[str, Any]) -> List[str]:
    # upstream keeps a single defaultRole per user
    role = user.get("defaultRole") or Role.user.value
    return [role]


def decide_access(roles: Iterable[str], email: str = "", *, email_heuristic: bool = False) -> AccessDecision:
    """Which dashboard a user with ``roles`` lands on, if any.

    ``me`` and ``admin`` dominate ``author``; ``user`` alone and any
    ``anonymous`` role are refused. With ``email_heuristic`` on, an email
    containing "author" adds the author role to an admin-dashboard session
    and asks for an author record, without switching the dashboard.
    """
    roles = [str(r.value if isinstance(r, Role) else r) for r in roles]
    present = set(roles)
    has_me = Role.me.value in present
    has_admin = Role.admin.value in present
    has_author = Role.author.value in present
    has_user = Role.user.value in present
    has_anonymous = Role.anonymous.value in present

    if (has_user and not (has_me or has_admin or has_author)) or has_anonymous:
        return AccessDecision(allowed=False, roles=roles)

    if has_author and not has_me and not has_admin:
        return AccessDecision(allowed=True, dashboard=Dashboard.author, roles=roles, needs_author=True)

    needs_author = False
    if email_heuristic and "author" in (email or "").lower():
        if not has_author:
            roles.append(Role.author.value)
        needs_author = True
    return AccessDecision(allowed=True, dashboard=Dashboard.admin, roles=roles, needs_author=needs_author)
