"""
Service Container - Dependency Injection Container

Holds the infrastructure handles (database, text generator) and builds
services from them on first access. The API lifespan creates one container
and stores it on app.state; nothing else holds a reference to the database.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from antar.ai.text_generator import StaticTextGenerator, TextGenerator
from antar.db.connection import Database

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    """

    # Infrastructure dependencies (injected)
    db: Database
    text_generator: TextGenerator = field(default_factory=StaticTextGenerator)

    # Services (lazy-loaded via properties)
    _habit_service: Optional[object] = field(default=None, init=False, repr=False)
    _leaderboard_service: Optional[object] = field(default=None, init=False, repr=False)
    _analytics_service: Optional[object] = field(default=None, init=False, repr=False)
    _profile_service: Optional[object] = field(default=None, init=False, repr=False)
    _copywriter: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def habit_service(self):
        """Get HabitService instance (lazy-loaded)"""
        if self._habit_service is None:
            from antar.services.habit_service import HabitService
            self._habit_service = HabitService(self.db)
            logger.debug("HabitService instantiated")
        return self._habit_service

    @property
    def leaderboard_service(self):
        """Get LeaderboardService instance (lazy-loaded)"""
        if self._leaderboard_service is None:
            from antar.services.leaderboard_service import LeaderboardService
            self._leaderboard_service = LeaderboardService(self.db)
            logger.debug("LeaderboardService instantiated")
        return self._leaderboard_service

    @property
    def analytics_service(self):
        """Get AnalyticsService instance (lazy-loaded)"""
        if self._analytics_service is None:
            from antar.services.analytics_service import AnalyticsService
            self._analytics_service = AnalyticsService(self.db)
            logger.debug("AnalyticsService instantiated")
        return self._analytics_service

    @property
    def profile_service(self):
        """Get ProfileService instance (lazy-loaded)"""
        if self._profile_service is None:
            from antar.services.profile_service import ProfileService
            self._profile_service = ProfileService(self.db)
            logger.debug("ProfileService instantiated")
        return self._profile_service

    @property
    def copywriter(self):
        """Get Copywriter instance (lazy-loaded)"""
        if self._copywriter is None:
            from antar.ai.copywriter import Copywriter
            self._copywriter = Copywriter(self.text_generator)
            logger.debug("Copywriter instantiated")
        return self._copywriter
