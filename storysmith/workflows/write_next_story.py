"""
Write-next-story workflow orchestrator.
Handles: load epic → pick next shell story → draft → mark completed in epic.

Issue creation itself belongs to the caller; this workflow only reads the
epic, prepares generation input and records completion.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from loguru import logger

from storysmith.adf.markdown import render_markdown
from storysmith.adf.sections import count_sections, extract_section, replace_section
from storysmith.config.settings import settings
from storysmith.core.errors import (
    CompletionMarkerError,
    InvalidDocumentError,
    SectionError,
    SectionErrorKind,
)
from storysmith.core.protocols import IArtifactCache, IDocumentStore, IProgressNotifier, ITextGenerator
from storysmith.models.adf import Document, Node, validate_adf
from storysmith.models.shell_story import ShellStory
from storysmith.stories.marker import add_completion_marker
from storysmith.stories.parser import ShellStoryParser
from storysmith.stories.planner import find_next_unwritten_story, validate_dependencies


@dataclass
class EpicSnapshot:
    """An epic as read from the store, split around its shell stories section."""

    epic_key: str
    document: Document
    section: List[Node]
    remainder: List[Node]
    stories: List[ShellStory]

    def story(self, story_id: str) -> Optional[ShellStory]:
        return next((s for s in self.stories if s.id == story_id), None)


class EpicStoryWorkflow:
    """Orchestrates shell story selection and completion marking for epics."""

    def __init__(
        self,
        store: IDocumentStore,
        notifier: Optional[IProgressNotifier] = None,
        heading: Optional[str] = None,
        parser: Optional[ShellStoryParser] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.heading = heading or settings.shell_stories_heading
        self.parser = parser or ShellStoryParser()
        # Writes to the same epic are serialized; different epics run concurrently
        self._epic_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def _notify(self, message: str) -> None:
        logger.info(message)
        if self.notifier is not None:
            await self.notifier.notify(message)

    @asynccontextmanager
    async def _epic_lock(self, epic_key: str) -> AsyncIterator[None]:
        """Hold the epic's lock; it is dropped once no caller holds or awaits it."""
        lock = self._epic_locks.setdefault(epic_key, asyncio.Lock())
        self._lock_users[epic_key] = self._lock_users.get(epic_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[epic_key] -= 1
            if not self._lock_users[epic_key]:
                del self._lock_users[epic_key]
                del self._epic_locks[epic_key]

    def split(self, epic_key: str, document: Document) -> EpicSnapshot:
        """
        Split a fetched document and parse its shell stories.

        Raises:
            SectionError: If the section is duplicated, missing or empty
            ShellStoryParseError: If a shell story is malformed
        """
        count = count_sections(document.content, self.heading)
        if count > 1:
            raise SectionError(SectionErrorKind.DUPLICATE, self.heading, count, epic_key)

        section, remainder = extract_section(document.content, self.heading)
        stories = self.parser.parse(section)
        if not stories:
            raise SectionError(SectionErrorKind.MISSING, self.heading, count, epic_key)

        return EpicSnapshot(
            epic_key=epic_key,
            document=document,
            section=section,
            remainder=remainder,
            stories=stories,
        )

    async def load(self, epic_key: str) -> EpicSnapshot:
        """Fetch an epic and parse its shell stories."""
        await self._notify(f"Extracting shell stories from {epic_key}...")
        document = await self.store.fetch_document(epic_key)
        return self.split(epic_key, document)

    async def next_story(self, snapshot: EpicSnapshot) -> Optional[ShellStory]:
        """
        Next unwritten story whose dependencies are all written.

        Returns:
            ShellStory, or None when every story is written

        Raises:
            DependencyError: If the next story's dependencies are not satisfied
        """
        await self._notify("Finding next unwritten story...")
        story = find_next_unwritten_story(snapshot.stories)
        if story is None:
            return None
        await self._notify(f"Validating dependencies of {story.id}...")
        validate_dependencies(story, snapshot.stories)
        return story

    def story_prompt_context(self, snapshot: EpicSnapshot, story: ShellStory) -> Dict[str, Any]:
        """Rendered markdown and structured fields for generating a story."""
        dependencies = [snapshot.story(dep_id) for dep_id in story.dependencies]
        return {
            "epic_key": snapshot.epic_key,
            "epic_context": render_markdown(snapshot.remainder).strip(),
            "shell_story": story.raw_markdown,
            "story_id": story.id,
            "title": story.title,
            "description": story.description,
            "screens": list(story.screens),
            "dependencies": [
                {"id": dep.id, "title": dep.title, "url": dep.reference_url}
                for dep in dependencies
                if dep is not None
            ],
        }

    async def draft_story(
        self,
        snapshot: EpicSnapshot,
        story: ShellStory,
        generator: ITextGenerator,
        cache: Optional[IArtifactCache] = None,
    ) -> str:
        """
        Generate the full story text for a shell story.

        Generated text is cached per epic and story when a cache is given.
        """
        cache_key = f"{snapshot.epic_key}:{story.id}"
        if cache is not None:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.info(f"Using cached draft for {cache_key}")
                return cached

        await self._notify(f"Generating story content for {story.id}...")
        context = self.story_prompt_context(snapshot, story)
        prompt = f"{context['epic_context']}\n\n{context['shell_story']}".strip()
        text = await generator.generate(prompt, context)

        if cache is not None:
            cache.put(cache_key, text)
        return text

    async def record_completion(
        self,
        epic_key: str,
        story_id: str,
        issue_key: str,
        issue_url: str,
        now: Optional[datetime] = None,
    ) -> Document:
        """
        Link a shell story to its created issue and persist the epic.

        The epic is re-read under a per-epic lock so concurrent completions
        of the same epic never overwrite each other.

        Returns:
            The persisted document

        Raises:
            CompletionMarkerError: The issue exists but the epic was not
                updated (partial success); the original error is the cause
        """
        async with self._epic_lock(epic_key):
            await self._notify(f"Updating {epic_key} with completion marker for {story_id}...")
            try:
                snapshot = await self.load(epic_key)
                updated_section = add_completion_marker(
                    snapshot.section, story_id, issue_url, now=now, parser=self.parser
                )
                content = replace_section(snapshot.document.content, self.heading, updated_section)
                document = snapshot.document.model_copy(update={"content": content})
                if not validate_adf(document):
                    raise InvalidDocumentError(f"Updated description of {epic_key} is not valid ADF")
                await self.store.persist_document(epic_key, document)
            except Exception as e:
                logger.error(f"Failed to mark {story_id} completed in {epic_key}: {e}")
                raise CompletionMarkerError(story_id, issue_key, epic_key, e) from e

        logger.info(f"Epic {epic_key} updated: {story_id} -> {issue_key}")
        return document
