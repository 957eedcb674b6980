"""
funseq - Pydantic Models

Configuration and diagnostics records for the lazy sequence engine.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ENV_PREFIX = "FUNSEQ_"

_TRUE_STRINGS = {"1", "true", "yes", "on"}


class SequenceSettings(BaseModel):
    """Runtime settings for sequence evaluation"""
    model_config = ConfigDict(frozen=True)

    log_level: str = Field(
        "WARNING",
        description="Level applied to the funseq logger"
    )
    trace_pulls: bool = Field(
        False,
        description="Log every element handed out by a restarted sequence"
    )
    materialize_limit: Optional[int] = Field(
        None,
        description="Maximum number of elements to_list()/join() may collect",
        ge=1
    )
    default_delimiter: str = Field(
        ",",
        description="Delimiter used by join() when none is given"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Accept standard logging level names, case-insensitively"""
        name = str(v).strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level: {v}")
        return name

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "SequenceSettings":
        """Build settings from ``FUNSEQ_*`` environment variables"""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if f"{ENV_PREFIX}LOG_LEVEL" in environ:
            values["log_level"] = environ[f"{ENV_PREFIX}LOG_LEVEL"]
        if f"{ENV_PREFIX}TRACE_PULLS" in environ:
            values["trace_pulls"] = environ[f"{ENV_PREFIX}TRACE_PULLS"].strip().lower() in _TRUE_STRINGS
        if environ.get(f"{ENV_PREFIX}MATERIALIZE_LIMIT"):
            values["materialize_limit"] = environ[f"{ENV_PREFIX}MATERIALIZE_LIMIT"]
        if f"{ENV_PREFIX}DEFAULT_DELIMITER" in environ:
            values["default_delimiter"] = environ[f"{ENV_PREFIX}DEFAULT_DELIMITER"]

        return cls(**values)


class PerformanceRecord(BaseModel):
    """Timing and memory figures for one measured operation"""
    operation: str = Field(..., description="Operation name")
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    memory_peak_mb: float = Field(..., description="Peak traced allocation in megabytes", ge=0)
    rss_mb: Optional[float] = Field(
        None,
        description="Resident set size of the process after the call",
        ge=0
    )
    success: bool = Field(True, description="Whether the operation returned normally")
    error: Optional[str] = Field(None, description="Error message if the operation raised")
    result_size: Optional[int] = Field(None, description="len() of the result when available")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the record was taken")
