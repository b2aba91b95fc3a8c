"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "scenario-reason"
    debug: bool = False
    log_level: str = "INFO"

    # Segment intake
    min_segment_ticks: int = 10
    ordered_processing: bool = True
    use_every_vehicle_as_primary: bool = False
    num_workers: int = 4

    # Projection selection
    projection_filter: str = ".*"
    projection_ignore_list: list[str] = []

    # Relational predicate offsets (metres)
    behind_offset: float = 2.0
    besides_offset: float = 2.0
    end_of_road_margin: float = 3.0
    in_reach_distance: float = 10.0

    # Speeds (mph)
    overtaking_min_speed_mph: float = 10.0
    stopped_speed_mph: float = 1.8

    # Following (seconds)
    follow_duration: float = 30.0
    follow_tail: float = 1.0

    # Traffic density bands (vehicles per block)
    mid_traffic_min: int = 6
    mid_traffic_max: int = 15

    # Prevalence thresholds
    traffic_prevalence: float = 0.6
    environment_prevalence: float = 0.6
    road_type_prevalence: float = 0.8
    maneuver_prevalence: float = 0.8

    model_config = {"env_prefix": "SCENARIO_"}


settings = Settings()
