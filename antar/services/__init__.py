"""
Service layer

Business logic behind the HTTP API, each service constructed with the
database handle it uses.
"""

from antar.services.container import ServiceContainer
from antar.services.habit_service import HabitService
from antar.services.leaderboard_service import LeaderboardService
from antar.services.analytics_service import AnalyticsService
from antar.services.profile_service import ProfileService

__all__ = [
    "ServiceContainer",
    "HabitService",
    "LeaderboardService",
    "AnalyticsService",
    "ProfileService",
]
