"""Notice data models.

A notice is one published legislative notice. ``num`` is the sole identity
used for deduplication: it strictly increases with recency and is never
reused for a different notice.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """Reference to a file attached to a notice (bill text, etc.)"""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=2000)


class Notice(BaseModel):
    """A single legislative notice as published by the source"""

    model_config = ConfigDict(frozen=True)

    num: int = Field(..., ge=0, description="Sequence number, higher is newer")
    subject: str = Field(..., min_length=1, max_length=1000)
    proposer_category: Optional[str] = Field(None, max_length=200)
    committee: Optional[str] = Field(None, max_length=200)
    num_comments: int = Field(0, ge=0)
    link: Optional[str] = Field(None, max_length=2000)
    attachments: List[Attachment] = Field(default_factory=list)
