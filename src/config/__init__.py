"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="grievance-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port", ge=1, le=65535)

    # ========== Storage ==========
    storage_backend: Literal["memory", "table"] = Field(
        default="memory",
        description="'memory' keeps grievances in-process, 'table' uses the SQL table with in-memory fallback"
    )
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/grievances",
        description="Key-value table connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Grievance Intake ==========
    ticket_prefix: str = Field(
        default="JS",
        description="Two-letter prefix of human-facing ticket numbers"
    )
    ticket_number_max_attempts: int = Field(
        default=10,
        description="Ticket numbers drawn before giving up on a collision-free one",
        ge=1
    )
    min_description_length: int = Field(
        default=20,
        description="Minimum description length accepted at intake",
        ge=1
    )
    enforce_status_workflow: bool = Field(
        default=False,
        description="Reject status changes outside Pending -> In Progress -> Resolved/Rejected"
    )

    # ========== Classifier ==========
    classifier_rules_path: Path = Field(
        default=Path("classifier_rules.yaml"),
        description="Optional YAML file overriding the built-in classifier rules"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("ticket_prefix")
    @classmethod
    def validate_ticket_prefix(cls, v: str) -> str:
        """Ticket prefixes are exactly two uppercase letters."""
        if len(v) != 2 or not v.isalpha() or not v.isupper():
            raise ValueError("ticket_prefix must be two uppercase letters")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class GrievanceCategory(str, Enum):
    """Departments a grievance can be routed to."""
    WATER_SUPPLY = "Water Supply"
    ROADS_TRANSPORT = "Roads & Transport"
    ELECTRICITY = "Electricity"
    SANITATION = "Sanitation"
    PUBLIC_SAFETY = "Public Safety"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    GENERAL = "General"


class GrievancePriority(str, Enum):
    """Grievance priority levels."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class GrievanceStatus(str, Enum):
    """Grievance lifecycle statuses."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


UNKNOWN_LOCATION = "Unknown"


# ========== Lists for validation ==========

VALID_CATEGORIES = [c.value for c in GrievanceCategory]
VALID_PRIORITIES = [p.value for p in GrievancePriority]
VALID_STATUSES = [s.value for s in GrievanceStatus]
