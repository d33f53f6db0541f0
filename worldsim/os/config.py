"""
worldsim/os/config.py

Every tunable of the simulation lives here. Values come from the
environment (or a .env file) with WORLDSIM_ prefixed names, so a
headless run can be retuned without touching code:

    WORLDSIM_TICK_INTERVAL=5 WORLDSIM_ACTIVITY_CHANCE=0.3 python main.py
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

LOCATIONS = ("town_square", "tavern", "market", "castle", "temple", "dungeon")

MAX_TEAM_SIZE = int(os.getenv("WORLDSIM_MAX_TEAM_SIZE", "5"))
MAX_GANG_SIZE = int(os.getenv("WORLDSIM_MAX_GANG_SIZE", "6"))


class SimulationConfig(BaseModel):
    """Probabilities are per tick unless noted otherwise."""

    model_config = ConfigDict(frozen=True)

    # Scheduler
    tick_interval: float = Field(60.0, gt=0)
    activity_chance: float = Field(0.15, ge=0, le=1)
    world_event_chance: float = Field(0.05, ge=0, le=1)

    # Memory
    memory_capacity: int = Field(100, ge=1)

    # Groups
    max_team_size: int = Field(MAX_TEAM_SIZE, ge=2)
    max_gang_size: int = Field(MAX_GANG_SIZE, ge=2)
    team_join_threshold: float = Field(0.5, ge=0, le=1)
    gang_join_threshold: float = Field(0.5, ge=0, le=1)
    betrayal_chance: float = Field(0.02, ge=0, le=1)
    low_loyalty: float = Field(0.3, ge=0, le=1)
    team_war_chance: float = Field(0.05, ge=0, le=1)
    turf_chance: float = Field(0.05, ge=0, le=1)
    turf_power_threshold: int = Field(120, ge=0)
    gang_formation_chance: float = Field(0.01, ge=0, le=1)
    rivalry_chance: float = Field(0.05, ge=0, le=1)

    # Social
    relationship_decay: float = Field(0.002, ge=0, le=1)   # share of every feeling lost per tick

    # Combat
    solo_round_cap: int = Field(20, ge=1)
    group_round_cap: int = Field(25, ge=1)
    team_round_cap: int = Field(15, ge=1)
    damage_bonus_max: int = Field(4, ge=0)
    coordination_bonus: float = Field(0.10, ge=0)
    group_mitigation: float = Field(0.15, ge=0, lt=1)
    group_exp_bonus: float = Field(0.15, ge=0)

    # Actions
    rest_fraction: float = Field(0.25, gt=0, le=1)
    train_chance: float = Field(0.30, ge=0, le=1)
    compat_high: float = Field(0.6, ge=0, le=1)
    compat_low: float = Field(0.3, ge=0, le=1)

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        """Build a config from WORLDSIM_* variables, falling back to defaults."""
        values = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"WORLDSIM_{name.upper()}")
            if raw is not None:
                values[name] = field.annotation(raw)
        return cls(**values)
