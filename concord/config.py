"""
Configuration for the aggregation engine and the survey API client.

Both configs are frozen dataclasses validated on construction (ValueError),
with environment variable overrides via ``from_env()``, which reports bad
values as ConfigurationError.

Environment:
    CONCORD_VARIANCE_EPSILON   variance floor added to expert sample variance
    CONCORD_MEMO_POLICY        "per_run" (default) or "acyclic"
    CONCORD_API_URL            survey API base URL
    CONCORD_API_TOKEN          bearer token for the survey API
    CONCORD_API_TIMEOUT        total request timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from concord.exceptions import ConfigurationError

DEFAULT_VARIANCE_EPSILON = 1e-6
DEFAULT_LIKERT_MAX = 3.0
DEFAULT_CONTINUOUS_MAX = 1.0
DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_API_TIMEOUT = 30.0


class MemoPolicy(str, Enum):
    """How goal results are cached during one propagation run.

    PER_RUN caches every computed goal by node id for the whole run. A goal
    first reached through a path that hits the cycle guard keeps that
    truncated value for later, non-cyclic visits.

    ACYCLIC caches per cycle scope. Goals outside any cycle are cached once.
    A goal inside a cycle is cached once for each goal through which
    evaluation entered that cycle, so every goal queried directly sees the
    cycle cut at itself, whatever was evaluated before it.
    """

    PER_RUN = "per_run"
    ACYCLIC = "acyclic"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for one aggregation run.

    Attributes:
        variance_epsilon: Added to every expert sample variance so downstream
            inverse-variance weights stay finite.
        default_likert_max: Scale maximum used when a likert question has none.
        default_continuous_max: Scale maximum used when a continuous question
            has none.
        memo_policy: Goal memoization policy, see MemoPolicy.
    """

    variance_epsilon: float = DEFAULT_VARIANCE_EPSILON
    default_likert_max: float = DEFAULT_LIKERT_MAX
    default_continuous_max: float = DEFAULT_CONTINUOUS_MAX
    memo_policy: MemoPolicy = MemoPolicy.PER_RUN

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.variance_epsilon <= 0:
            raise ValueError("variance_epsilon must be positive")
        if self.default_likert_max <= 0:
            raise ValueError("default_likert_max must be positive")
        if self.default_continuous_max <= 0:
            raise ValueError("default_continuous_max must be positive")
        if not isinstance(self.memo_policy, MemoPolicy):
            object.__setattr__(self, "memo_policy", MemoPolicy(self.memo_policy))

    def with_overrides(
        self,
        variance_epsilon: Optional[float] = None,
        memo_policy: Optional[MemoPolicy | str] = None,
    ) -> EngineConfig:
        """Create a new config with the given overrides applied."""
        return replace(
            self,
            variance_epsilon=(
                variance_epsilon if variance_epsilon is not None else self.variance_epsilon
            ),
            memo_policy=MemoPolicy(memo_policy) if memo_policy is not None else self.memo_policy,
        )

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from CONCORD_* environment variables.

        Raises:
            ConfigurationError: If a variable does not parse or fails validation.
        """
        try:
            return cls(
                variance_epsilon=float(
                    os.environ.get("CONCORD_VARIANCE_EPSILON", DEFAULT_VARIANCE_EPSILON)
                ),
                memo_policy=MemoPolicy(
                    os.environ.get("CONCORD_MEMO_POLICY", MemoPolicy.PER_RUN.value).lower()
                ),
            )
        except ValueError as e:
            raise ConfigurationError("EngineConfig", str(e)) from e


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for the survey API.

    Example:
        config = ClientConfig(base_url="https://gsn.example.com/api", token="...")
    """

    base_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    timeout_seconds: float = DEFAULT_API_TIMEOUT

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def with_overrides(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> ClientConfig:
        """Create a new config with the given overrides applied.

        Raises:
            ConfigurationError: If an override fails validation.
        """
        try:
            return ClientConfig(
                base_url=base_url if base_url is not None else self.base_url,
                token=token if token is not None else self.token,
                timeout_seconds=(
                    timeout_seconds if timeout_seconds is not None else self.timeout_seconds
                ),
            )
        except ValueError as e:
            raise ConfigurationError("ClientConfig", str(e)) from e

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from CONCORD_API_* environment variables.

        Raises:
            ConfigurationError: If a variable does not parse or fails validation.
        """
        try:
            return cls(
                base_url=os.environ.get("CONCORD_API_URL", DEFAULT_API_URL),
                token=os.environ.get("CONCORD_API_TOKEN") or None,
                timeout_seconds=float(os.environ.get("CONCORD_API_TIMEOUT", DEFAULT_API_TIMEOUT)),
            )
        except ValueError as e:
            raise ConfigurationError("ClientConfig", str(e)) from e


__all__ = [
    "MemoPolicy",
    "EngineConfig",
    "ClientConfig",
    "DEFAULT_VARIANCE_EPSILON",
    "DEFAULT_LIKERT_MAX",
    "DEFAULT_CONTINUOUS_MAX",
    "DEFAULT_API_URL",
]
