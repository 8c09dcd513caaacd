"""
Local YAML-based implementation of PlannerConfigurationRepository.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from planner.domain import PlannerSettings
from planner.errors import SchedulingError
from planner.repositories import PlannerConfigurationRepository

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/planner/planner.yaml"
CONFIG_ENV_VAR = "PLANNER_CONFIG"

_CLOCK_KEYS = {"start", "end"}


def _restore_clock_times(node: Any) -> Any:
    """
    Turn sexagesimal integers back into HH:mm strings.

    YAML 1.1 reads an unquoted ``12:30`` as the integer 750.
    """
    if isinstance(node, dict):
        return {
            key: (
                f"{value // 60:02d}:{value % 60:02d}"
                if key in _CLOCK_KEYS
                and isinstance(value, int)
                and not isinstance(value, bool)
                else _restore_clock_times(value)
            )
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [_restore_clock_times(item) for item in node]
    return node


class LocalPlannerConfigurationRepository(PlannerConfigurationRepository):
    """
    Local YAML file implementation of PlannerConfigurationRepository.

    The file holds the fields of ``PlannerSettings`` at its top level::

        working_hours:
          start: "09:00"
          end: "17:00"
          working_days: [1, 2, 3, 4, 5]
          time_zone: Europe/London
          break_times:
            - {name: Lunch, start: "12:00", end: "13:00"}
        high_energy_windows:
          - {start: "09:00", end: "11:30", weight: 8}
        max_suggestions: 5
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize with path to configuration file.

        Args:
            config_path: Path to YAML configuration file, supports ~
                expansion. Defaults to ``$PLANNER_CONFIG`` or
                ``~/.config/planner/planner.yaml``.
        """
        config_path = config_path or os.environ.get(
            CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH
        )
        self.config_path = Path(config_path).expanduser()
        logger.debug(
            f"Initialized LocalPlannerConfigurationRepository with path: "
            f"{self.config_path}"
        )

    def get_settings(self) -> PlannerSettings:
        """Load settings from the YAML file, falling back to defaults."""
        if not self.config_path.exists():
            logger.warning(
                f"Configuration file not found: {self.config_path}; "
                f"using default settings"
            )
            return PlannerSettings()

        try:
            with open(self.config_path, "r") as f:
                config_data = yaml.safe_load(f)
        except (IOError, yaml.YAMLError) as e:
            logger.error(
                f"Failed to load configuration from {self.config_path}: {e}"
            )
            return PlannerSettings()

        if not config_data:
            logger.warning(
                f"Configuration file is empty: {self.config_path}; "
                f"using default settings"
            )
            return PlannerSettings()

        if not isinstance(config_data, dict):
            logger.error(
                f"Configuration file must contain a YAML dictionary: "
                f"{self.config_path}"
            )
            return PlannerSettings()

        try:
            settings = PlannerSettings.model_validate(
                _restore_clock_times(config_data)
            )
        except (ValidationError, SchedulingError) as e:
            logger.error(
                f"Invalid planner settings in {self.config_path}: {e}"
            )
            return PlannerSettings()

        logger.info(
            f"Loaded planner settings from {self.config_path}",
            extra={
                "time_zone": settings.working_hours.time_zone,
                "high_energy_windows": len(settings.high_energy_windows),
            },
        )
        return settings
