"""
Service configuration.

All runtime knobs are read once from the environment into a frozen
``Settings`` object. Handlers and the workflow receive settings explicitly;
tests install their own through ``override_settings``.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .auth import ActorResolver, CognitoClaimsActorResolver, QueryRoleActorResolver
from .errors import AppError, ErrorCode

DEFAULT_ACTIVITY_LOG_LIMIT = 10
DEFAULT_ACTIVITY_LOG_TIMEZONE = "Asia/Manila"

ACTOR_RESOLVERS = {
    "cognito": CognitoClaimsActorResolver,
    "query-role": QueryRoleActorResolver,
}


@dataclass(frozen=True)
class Settings:
    """Explicit configuration for the catalog service."""

    table_name: str
    dynamodb_endpoint: Optional[str] = None
    activity_log_limit: int = DEFAULT_ACTIVITY_LOG_LIMIT
    activity_log_timezone: str = DEFAULT_ACTIVITY_LOG_TIMEZONE
    actor_resolver: ActorResolver = field(default_factory=CognitoClaimsActorResolver)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If CATALOG_TABLE_NAME is missing or a value is malformed
        """
        table_name = os.getenv("CATALOG_TABLE_NAME")
        if not table_name:
            raise ValueError("Required environment variable 'CATALOG_TABLE_NAME' is not set")

        limit_raw = os.getenv("ACTIVITY_LOG_LIMIT", str(DEFAULT_ACTIVITY_LOG_LIMIT))
        try:
            activity_log_limit = int(limit_raw)
        except ValueError:
            raise ValueError(f"ACTIVITY_LOG_LIMIT must be an integer, got '{limit_raw}'")
        if activity_log_limit < 1:
            raise ValueError("ACTIVITY_LOG_LIMIT must be at least 1")

        resolver_name = os.getenv("ACTOR_RESOLVER", "cognito").lower()
        resolver_cls = ACTOR_RESOLVERS.get(resolver_name)
        if resolver_cls is None:
            raise ValueError(
                f"ACTOR_RESOLVER must be one of {sorted(ACTOR_RESOLVERS)}, got '{resolver_name}'"
            )

        return cls(
            table_name=table_name,
            dynamodb_endpoint=os.getenv("DYNAMODB_ENDPOINT"),
            activity_log_limit=activity_log_limit,
            activity_log_timezone=os.getenv("ACTIVITY_LOG_TIMEZONE", DEFAULT_ACTIVITY_LOG_TIMEZONE),
            actor_resolver=resolver_cls(),
        )


_settings_override: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the active settings (test override first, then environment)."""
    if _settings_override is not None:
        return _settings_override
    try:
        return Settings.from_env()
    except ValueError as e:
        raise AppError(ErrorCode.INTERNAL_ERROR, f"Service is misconfigured: {e}")


# Test utilities
def override_settings(settings: Optional[Settings]) -> None:
    """Override settings for testing. Set to None to clear override."""
    global _settings_override
    _settings_override = settings
