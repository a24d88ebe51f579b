"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base; unknown fields are rejected with a 422."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)
