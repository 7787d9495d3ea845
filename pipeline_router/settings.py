from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_network_path() -> str:
    # The example network ships next to the package, in the repo's data/ folder.
    return str(Path(__file__).resolve().parents[1] / "data" / "pipeline_network.json")


class Settings(BaseSettings):
    """Env-driven defaults for the planner and its dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_ROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    network_path: str = Field(default_factory=_default_network_path)
    log_level: str = Field(default="INFO")

    default_max_cost: float = Field(default=10000.0, ge=0.0)
    max_cost_step: float = Field(default=100.0, gt=0.0)
    max_terrain: int = Field(default=3, ge=1)
    default_terrain_ceiling: int = Field(default=3, ge=1)

    currency_symbol: str = Field(default="₹")
    alternative_routes: int = Field(default=3, ge=1, le=10)
    # None disables the deadline; small graphs never need one.
    search_timeout_s: float | None = Field(default=None, gt=0.0)

    plots_dir: str = Field(default="plots")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()


settings = Settings()
