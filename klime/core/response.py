"""Collector response model for the batch endpoint."""

from typing import Any

from pydantic import BaseModel


class BatchEventError(BaseModel):
    """Rejection reported by the collector for one event in a batch."""

    index: int = -1
    message: str = ""
    code: str = ""

    model_config = {"frozen": True}


class BatchResponse(BaseModel):
    """Decoded body of a successful ``/v1/batch`` response."""

    status: str = "ok"
    accepted: int = 0
    failed: int = 0
    errors: list[BatchEventError] | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BatchResponse":
        """Build a response from decoded JSON, defaulting missing fields."""
        errors = data.get("errors")
        if isinstance(errors, list):
            parsed = [BatchEventError.model_validate(e) for e in errors if isinstance(e, dict)]
        else:
            parsed = None
        return cls(
            status=data.get("status", "ok"),
            accepted=data.get("accepted", 0),
            failed=data.get("failed", 0),
            errors=parsed,
        )

    @property
    def is_success(self) -> bool:
        return self.failed == 0

    @property
    def is_partial(self) -> bool:
        return self.failed > 0
