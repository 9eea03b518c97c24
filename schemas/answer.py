"""Pydantic model for the result of one question."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AskResult(BaseModel):
    """Answer shown to the user plus the context it was grounded on.

    ``context_used`` is None whenever the engine refused; ``score`` is the
    similarity of the nearest retrieved chunk (0 when nothing was retrieved).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    answer: str
    context_used: Optional[str] = Field(None, alias="contextUsed")
    score: float = Field(ge=0.0, le=1.0)

    def to_payload(self) -> dict:
        """Serialize with the public field names: answer, contextUsed, score."""
        return self.model_dump(by_alias=True)
