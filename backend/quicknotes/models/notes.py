from pydantic import BaseModel, Field


class NoteDraft(BaseModel):
    """Title/content payload for create and update. No length rules: plain text."""

    title: str = Field(default="")
    content: str = Field(default="")
