"""Feature flags."""

from curator.flags.flags import DEFAULT_FLAGS, FeatureFlags

__all__ = ["DEFAULT_FLAGS", "FeatureFlags"]
