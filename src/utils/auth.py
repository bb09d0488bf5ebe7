"""
Authorization utilities for catalog record requests.

Implements the role-based privilege model: an actor whose roles include
ADMIN or SUPER_ADMIN bypasses the approval gate and may resolve pending
approvals. Actors are resolved per request by an explicit strategy object
carried on the settings, never from ambient process state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .errors import AppError, ErrorCode

PRIVILEGED_ROLES: FrozenSet[str] = frozenset({"ADMIN", "SUPER_ADMIN"})


@dataclass(frozen=True)
class Actor:
    """An authenticated caller as seen by the approval workflow."""

    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_privileged(self) -> bool:
        """True if the actor may bypass and resolve approvals."""
        return is_privileged(self.roles)


def is_privileged(roles: Optional[Iterable[str]]) -> bool:
    """
    Check if a role set grants approval privileges.

    Args:
        roles: Role tags of the caller (case-insensitive), may be None

    Returns:
        True if roles intersect ADMIN/SUPER_ADMIN
    """
    if not roles:
        return False
    return any(str(role).upper() in PRIVILEGED_ROLES for role in roles)


def _normalize_groups(groups: Any) -> List[str]:
    # cognito:groups can be a list, a JSON-ish "[A B]" string or a comma list
    if groups is None:
        return []
    if isinstance(groups, str):
        cleaned = groups.strip().strip("[]")
        separators = "," if "," in cleaned else " "
        return [g.strip() for g in cleaned.split(separators) if g.strip()]
    if isinstance(groups, (list, tuple, set, frozenset)):
        return [str(g) for g in groups]
    return []


class ActorResolver:
    """Strategy interface: turn an API Gateway event into an Actor."""

    def resolve(self, event: Dict[str, Any]) -> Actor:
        raise NotImplementedError


class CognitoClaimsActorResolver(ActorResolver):
    """Resolve the actor from the Cognito authorizer claims on the event."""

    def resolve(self, event: Dict[str, Any]) -> Actor:
        request_context = event.get("requestContext") or {}
        authorizer = request_context.get("authorizer") or {}
        claims = authorizer.get("claims") or {}

        username = claims.get("cognito:username") or claims.get("username") or claims.get("email")
        if not username:
            raise AppError(ErrorCode.UNAUTHORIZED, "Authentication required")

        roles = frozenset(role.upper() for role in _normalize_groups(claims.get("cognito:groups")))
        return Actor(username=str(username), roles=roles)


class QueryRoleActorResolver(CognitoClaimsActorResolver):
    """
    Development-stack resolver: a ``userRole`` query parameter replaces the
    caller's roles.

    Only ever installed explicitly through ``ACTOR_RESOLVER=query-role``.
    """

    def __init__(self, default_username: str = "developer") -> None:
        self.default_username = default_username

    def resolve(self, event: Dict[str, Any]) -> Actor:
        try:
            actor = super().resolve(event)
        except AppError:
            actor = Actor(username=self.default_username, roles=frozenset({"USER"}))

        query = event.get("queryStringParameters") or {}
        user_role = query.get("userRole")
        if user_role:
            return Actor(username=actor.username, roles=frozenset({str(user_role).upper()}))
        return actor


class StaticActorResolver(ActorResolver):
    """Always returns the same actor. Used by tests and local harnesses."""

    def __init__(self, actor: Actor) -> None:
        self.actor = actor

    def resolve(self, event: Dict[str, Any]) -> Actor:
        return self.actor


def require_privileged(actor: Actor, action: str, label: str) -> None:
    """
    Require the actor to hold an approval role or raise FORBIDDEN.

    Args:
        actor: Caller
        action: Verb used in the message ("approve", "deny")
        label: Human-readable resource label

    Raises:
        AppError: If the actor has no roles or no privileged role
    """
    if not actor.roles:
        raise AppError(ErrorCode.FORBIDDEN, "User roles not found")
    if not actor.is_privileged:
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"Current user is not authorized to {action} {label.lower()} change request",
        )
