"""
Shell story model parsed from an epic's Shell Stories section.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from storysmith.models.adf import Node


class ShellStory(BaseModel):
    """
    One shell story bullet.

    A read-only projection of the epic: it is recomputed from the document on
    every parse and never written back. Updates go through the completion
    marker, which edits the document nodes directly.
    """

    id: str = Field(description="Story id (e.g., st001)")
    title: str = Field(description="Story title")
    description: str = Field(description="One-line description after the separator")
    reference_url: Optional[str] = Field(
        default=None, description="Link on the title once the story has been written"
    )
    screens: List[str] = Field(default_factory=list, description="Figma screen URLs")
    dependencies: List[str] = Field(default_factory=list, description="Ids of stories this one depends on")
    position: int = Field(default=0, description="Zero-based index in document order")
    source: Node = Field(description="The listItem node this story was parsed from")

    @property
    def is_completed(self) -> bool:
        return bool(self.reference_url)

    @property
    def raw_markdown(self) -> str:
        """The original bullet rendered as markdown, for generation prompts."""
        from storysmith.adf.markdown import render_markdown

        return render_markdown([self.source]).strip()

    def summary(self) -> dict:
        """Structured fields without the source subtree."""
        return self.model_dump(exclude={"source"})
