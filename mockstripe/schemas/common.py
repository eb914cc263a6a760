from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Metadata = dict[str, Any] | str | None


class StripeParams(BaseModel):
    """Request parameters. Unknown parameters are tolerated on create."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
    expand: list[str] | None = None

    def present(self) -> dict[str, Any]:
        """Only the params the caller actually sent (null included)."""
        return self.model_dump(exclude_unset=True, exclude={"expand"})


class StripeUpdateParams(StripeParams):
    """Update parameters. Unknown parameters are rejected."""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class ListParams(StripeParams):
    limit: int | None = Field(default=None, ge=1, le=100)
    starting_after: str | None = None
    ending_before: str | None = None

