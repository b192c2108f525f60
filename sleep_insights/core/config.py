"""
Application configuration for Sleep Insights.

Provides environment-aware settings with conservative defaults. Filter bounds,
rolling width and event windows are configurable to avoid hard-coded
"magic numbers" in the analysis stages.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ViewSettings(BaseModel):
	"""
	Parameters for the filtered night view.

	Notes:
	- min_hours/max_hours: inclusive bounds on total sleep per night;
	  min_hours above max_hours selects no nights.
	- date_from/date_to: inclusive calendar bounds, both optional.
	- rolling_window: number of nights in each moving average.
	"""

	model_config = {"frozen": True}

	min_hours: float = Field(5.0, ge=0.0, le=24.0)
	max_hours: float = Field(12.0, ge=0.0, le=24.0)
	date_from: Optional[date] = None
	date_to: Optional[date] = None
	rolling_window: int = Field(7, ge=1)


class AnalysisConfig(BaseModel):
	"""
	Defaults for the normalization and analysis stages.

	Notes:
	- event_window_days: nights considered on each side of an event.
	- low_deep_percentile: share of months flagged as low deep sleep.
	- sleep_table_extension: archive members parsed as night tables.
	- event_line_separator: splits a free-text event line into date and label.
	"""

	view: ViewSettings = ViewSettings()
	event_window_days: int = Field(30, ge=1)
	low_deep_percentile: int = Field(20, ge=5, le=50)
	sleep_table_extension: str = Field(".csv", min_length=1)
	event_line_separator: str = Field(" - ", min_length=1)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="SLEEP_INSIGHTS_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	analysis: AnalysisConfig = AnalysisConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
