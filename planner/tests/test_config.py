"""
Tests for loading planner settings from YAML.
"""

from pathlib import Path

import pytest

from planner.domain import PlannerSettings
from planner.repos.local import LocalPlannerConfigurationRepository
from planner.repos.local.config import CONFIG_ENV_VAR


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "planner.yaml"
    path.write_text(text)
    return path


class TestLocalPlannerConfiguration:
    def test_full_settings(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            "working_hours:\n"
            "  start: '08:30'\n"
            "  end: '16:30'\n"
            "  working_days: [1, 2, 3, 4]\n"
            "  time_zone: Europe/London\n"
            "  break_times:\n"
            "    - {name: Lunch, start: '12:00', end: '12:45'}\n"
            "high_energy_windows:\n"
            "  - {start: '09:00', end: '11:00', weight: 9}\n"
            "max_suggestions: 3\n"
            "search_horizon_days: 14\n",
        )

        settings = LocalPlannerConfigurationRepository(str(path)).get_settings()

        hours = settings.working_hours
        assert (hours.start, hours.end) == ("08:30", "16:30")
        assert hours.working_days == [1, 2, 3, 4]
        assert hours.time_zone == "Europe/London"
        assert hours.break_times[0].name == "Lunch"
        assert settings.high_energy_windows[0].weight == 9
        assert settings.max_suggestions == 3
        assert settings.search_horizon_days == 14

    def test_unquoted_clock_times(self, tmp_path: Path) -> None:
        # YAML 1.1 reads 12:30 as the integer 750
        path = write_config(
            tmp_path,
            "working_hours:\n"
            "  start: 10:00\n"
            "  end: 18:30\n"
            "  break_times:\n"
            "    - {start: 12:30, end: 13:15}\n",
        )

        settings = LocalPlannerConfigurationRepository(str(path)).get_settings()

        hours = settings.working_hours
        assert (hours.start, hours.end) == ("10:00", "18:30")
        assert (hours.break_times[0].start, hours.break_times[0].end) == (
            "12:30",
            "13:15",
        )

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        repo = LocalPlannerConfigurationRepository(str(tmp_path / "missing.yaml"))

        assert repo.get_settings() == PlannerSettings()

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "working_hours: [unclosed\n",
            "- just\n- a list\n",
            "working_hours:\n  start: '18:00'\n  end: '09:00'\n",
            "max_suggestions: 0\n",
            "working_hours:\n  time_zone: Nowhere/Special\n",
        ],
    )
    def test_unusable_file_gives_defaults(self, tmp_path: Path, text: str) -> None:
        path = write_config(tmp_path, text)

        settings = LocalPlannerConfigurationRepository(str(path)).get_settings()

        assert settings == PlannerSettings()

    def test_path_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_config(tmp_path, "max_suggestions: 2\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        repo = LocalPlannerConfigurationRepository()

        assert repo.config_path == path
        assert repo.get_settings().max_suggestions == 2

    def test_explicit_path_wins_over_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "other.yaml"))
        path = write_config(tmp_path, "max_suggestions: 4\n")

        repo = LocalPlannerConfigurationRepository(str(path))

        assert repo.get_settings().max_suggestions == 4

    def test_home_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        repo = LocalPlannerConfigurationRepository()

        assert repo.config_path == (
            Path.home() / ".config" / "planner" / "planner.yaml"
        )
