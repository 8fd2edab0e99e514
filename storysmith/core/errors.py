"""
Structured exceptions.

Every error carries the fields an operator needs to locate the problem in the
source epic (story id, heading label, position); the message is built from
those fields so presentation layers can format their own prose instead.
"""

from enum import Enum
from typing import List, Optional, Sequence


class StorySmithError(Exception):
    """Base class for all StorySmith errors."""


class ParseErrorKind(str, Enum):
    MISSING_ID = "missing_id"
    MISSING_TITLE = "missing_title"
    MISSING_SEPARATOR = "missing_separator"
    MISSING_DESCRIPTION = "missing_description"
    DUPLICATE_ID = "duplicate_id"


class ShellStoryParseError(StorySmithError):
    """A shell story bullet does not follow the micro-syntax."""

    def __init__(
        self,
        kind: ParseErrorKind,
        story_id: Optional[str] = None,
        position: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.kind = kind
        self.story_id = story_id
        self.position = position
        self.detail = detail
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        subject = f"Shell story {self.story_id}" if self.story_id else "Shell story"
        if self.position is not None:
            subject += f" (item {self.position + 1})"
        messages = {
            ParseErrorKind.MISSING_ID: "is missing a code-marked id such as `st001`",
            ParseErrorKind.MISSING_TITLE: "has no title before the separator",
            ParseErrorKind.MISSING_SEPARATOR: "has no separator between title and description",
            ParseErrorKind.MISSING_DESCRIPTION: "has no description after the separator",
            ParseErrorKind.DUPLICATE_ID: "reuses an id that appears earlier in the section",
        }
        message = f"{subject} {messages[self.kind]}"
        if self.detail:
            message += f": {self.detail}"
        return message


class StoryNotFoundError(StorySmithError, LookupError):
    """No list item in the section carries the requested story id."""

    def __init__(self, story_id: str, available: Sequence[str] = ()):
        self.story_id = story_id
        self.available: List[str] = list(available)
        message = f"Story {story_id} not found in shell stories section"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class SectionErrorKind(str, Enum):
    MISSING = "missing"
    DUPLICATE = "duplicate"


class SectionError(StorySmithError):
    """A required section is absent, empty, or present more than once."""

    def __init__(self, kind: SectionErrorKind, heading: str, count: int = 0, document_key: Optional[str] = None):
        self.kind = kind
        self.heading = heading
        self.count = count
        self.document_key = document_key
        where = f" in {document_key}" if document_key else ""
        if kind == SectionErrorKind.DUPLICATE:
            message = f'Found {count} "{heading}" sections{where}; expected exactly one'
        else:
            message = f'Section "{heading}" is missing or empty{where}'
        super().__init__(message)


class DependencyErrorKind(str, Enum):
    MISSING = "missing"
    UNWRITTEN = "unwritten"
    CYCLE = "cycle"


class DependencyError(StorySmithError):
    """A story's dependencies cannot be satisfied."""

    def __init__(
        self,
        kind: DependencyErrorKind,
        story_id: str,
        dependency_id: str,
        available: Sequence[str] = (),
    ):
        self.kind = kind
        self.story_id = story_id
        self.dependency_id = dependency_id
        self.available: List[str] = list(available)
        if kind == DependencyErrorKind.MISSING:
            message = f'Dependency "{dependency_id}" of story {story_id} does not exist'
            if self.available:
                message += f" (available: {', '.join(self.available)})"
        elif kind == DependencyErrorKind.UNWRITTEN:
            message = f'Story {story_id} depends on "{dependency_id}", which has not been written yet'
        else:
            message = f'Dependency cycle between {story_id} and "{dependency_id}"'
        super().__init__(message)


class CompletionMarkerError(StorySmithError):
    """
    The issue for a story was created but the epic could not be updated.

    This is a partial success: the created issue stays, only the completion
    marker in the epic is missing.
    """

    def __init__(self, story_id: str, issue_key: str, epic_key: str, cause: BaseException):
        self.story_id = story_id
        self.issue_key = issue_key
        self.epic_key = epic_key
        self.cause = cause
        super().__init__(
            f"Issue {issue_key} was created, but epic {epic_key} could not be updated "
            f"with a completion marker for story {story_id}: {cause}"
        )


class InvalidDocumentError(StorySmithError):
    """A document does not have a valid ADF envelope."""


class DocumentNotFoundError(StorySmithError, LookupError):
    """The document store has no document under the given key."""

    def __init__(self, document_key: str):
        self.document_key = document_key
        super().__init__(f"Document {document_key} not found")


class DocumentAccessError(StorySmithError):
    """The document store refused access to the document."""

    def __init__(self, document_key: str, status_code: Optional[int] = None):
        self.document_key = document_key
        self.status_code = status_code
        super().__init__(f"Access denied to document {document_key} (HTTP {status_code})")
