"""
Protocol interfaces for dependency inversion.
Defines contracts for the external collaborators of the shell story workflow.
"""

from typing import Any, Dict, Optional, Protocol

from storysmith.models.adf import Document


class IDocumentStore(Protocol):
    """Interface for reading and writing epic descriptions."""

    async def fetch_document(self, document_key: str) -> Document:
        """
        Get the current persisted document.

        Args:
            document_key: Document key (e.g., epic 'PROJ-123')

        Returns:
            Document

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentAccessError: If access is denied
        """
        ...

    async def persist_document(self, document_key: str, document: Document) -> None:
        """
        Overwrite the persisted document. All-or-nothing.

        Args:
            document_key: Document key
            document: Full replacement document
        """
        ...


class ITextGenerator(Protocol):
    """Interface for the text-generation call."""

    async def generate(self, prompt: str, context: Dict[str, Any]) -> str:
        """
        Generate text from a rendered prompt.

        Args:
            prompt: Markdown rendered from the document tree
            context: Structured context supplied by the caller

        Returns:
            Generated markup text
        """
        ...


class IProgressNotifier(Protocol):
    """Interface for progress notifications."""

    async def notify(self, message: str) -> None:
        ...


class IArtifactCache(Protocol):
    """Interface for a key/value cache of generated artifacts."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def put(self, key: str, artifact: Any) -> None:
        ...
