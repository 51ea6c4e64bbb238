"""
Document data models

Plain-text documents that can be attached to a chat as context.
"""
import time
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field


class DocItem(BaseModel):
    """Stored document"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Document unique identifier")
    title: str = Field(..., description="Document title")
    content: str = Field(default="", description="Full document text")
    updated_at: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        description="Last update time in epoch milliseconds",
    )

    def as_context_block(self) -> str:
        """Render the document the way it is injected into prompts."""
        return f"[DOC:{self.title}]\n{self.content}"


class DocumentsConfig(BaseModel):
    """Complete documents file"""
    documents: List[DocItem] = Field(default_factory=list)


class DocUpsert(BaseModel):
    """Create/update document request"""
    id: Optional[str] = Field(None, description="Existing id to update; omitted to create")
    title: str = Field(..., min_length=1, description="Document title")
    content: str = Field(default="", description="Full document text")
