"""Coverage thresholds configuration model."""

from pydantic import BaseModel, Field


class ThresholdsConfig(BaseModel):
    """Minimum coverage percentages for the quality gate.

    Attributes:
        service: Minimum repository-wide coverage (0-100)
        patch: Minimum patch coverage (0-100)
    """

    service: float = Field(0.0, ge=0.0, le=100.0)
    patch: float = Field(0.0, ge=0.0, le=100.0)
