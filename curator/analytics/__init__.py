"""Read-only usage analytics over users and generations."""

from curator.analytics.dashboard import GENERATION_CATEGORIES, RANGE_WINDOWS, AnalyticsService, category_of

__all__ = ["GENERATION_CATEGORIES", "RANGE_WINDOWS", "AnalyticsService", "category_of"]
