"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class LockoutConfig:
    """Password lockout policy.

    Lockout starts once ``max_failures`` consecutive failures have been
    recorded. Each further failure doubles the window (with the default
    multiplier) up to ``max_lock_seconds``.
    """

    max_failures: int = 5
    base_lock_seconds: int = 10
    backoff_multiplier: float = 2.0
    max_lock_seconds: int = 300

    def lock_seconds(self, attempt_count: int) -> int:
        """Lockout duration after ``attempt_count`` failures, or 0 if none applies."""
        if attempt_count < self.max_failures:
            return 0
        backoff_steps = attempt_count - self.max_failures
        seconds = int(self.base_lock_seconds * self.backoff_multiplier**backoff_steps)
        return min(self.max_lock_seconds, max(1, seconds))


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Navigation configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(secret_key="s3cr3t", verification_timeout_seconds=5.0)
    """

    # Password gate
    lockout: LockoutConfig = field(default_factory=LockoutConfig)
    verification_timeout_seconds: float = 10.0
    transport_cooldown_seconds: float = 2.0
    verify_url: str = "/.netlify/functions/secure-operations"

    # Session persistence of gate state (signed with itsdangerous)
    secret_key: str = ""
    session_max_age: int = 86400  # 24 hours

    # Presence
    presence_stale_seconds: float = 300.0  # 5 minutes

    # Navigation
    default_fragment: str = "#/dashboard"
