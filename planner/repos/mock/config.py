"""
Mock implementation of PlannerConfigurationRepository for development and
testing.
"""

import logging

from planner.domain import BreakTime, PlannerSettings, TimeSlot, WorkingHours
from planner.repositories import PlannerConfigurationRepository

logger = logging.getLogger(__name__)


class MockPlannerConfigurationRepository(PlannerConfigurationRepository):
    """
    Mock implementation of PlannerConfigurationRepository with hardcoded
    settings for development and testing purposes.
    """

    def __init__(self):
        """Initialize with predefined mock settings."""
        self.settings = PlannerSettings(
            working_hours=WorkingHours(
                start="09:00",
                end="17:00",
                working_days=[1, 2, 3, 4, 5],
                break_times=[BreakTime(name="Lunch", start="12:00", end="13:00")],
            ),
            high_energy_windows=[
                TimeSlot(start="09:00", end="11:30", weight=8),
                TimeSlot(start="14:00", end="16:00", weight=6),
            ],
        )

    def get_settings(self) -> PlannerSettings:
        logger.debug("Returning mock planner settings")
        return self.settings
