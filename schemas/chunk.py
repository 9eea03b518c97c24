"""Pydantic model for retrieval-ready chunks (the unit stored in the vector store)."""

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    id: str = Field(description="Stable ID derived from the chunk's position, e.g. 'chunk_0'")
    text: str = Field(min_length=1, description="Trimmed chunk text for embedding and retrieval")
    ordinal: int = Field(ge=0, description="Position of the chunk in the source document")

    @classmethod
    def at(cls, ordinal: int, text: str) -> "Chunk":
        return cls(id=f"chunk_{ordinal}", text=text, ordinal=ordinal)
