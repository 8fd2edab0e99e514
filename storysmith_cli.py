#!/usr/bin/env python3
"""
StorySmith CLI - inspect and update shell stories in exported epic descriptions
"""

import sys
import json
import argparse
from datetime import datetime
from pathlib import Path
from loguru import logger

from storysmith.adf.markdown import document_to_markdown, render_markdown
from storysmith.adf.sections import count_sections, extract_section, replace_section
from storysmith.config.settings import settings
from storysmith.core.errors import StorySmithError
from storysmith.models.adf import Document
from storysmith.stories.marker import add_completion_marker
from storysmith.stories.parser import ShellStoryParser
from storysmith.stories.planner import find_next_unwritten_story, validate_dependencies


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}")


def load_document(path: Path) -> Document:
    """
    Load an ADF document from a JSON file.

    Accepts an ADF doc, a bare list of nodes, or a Jira issue payload with
    fields.description.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if isinstance(raw, dict) and "fields" in raw:
        raw = raw["fields"].get("description")
    return Document.from_adf(raw)


def _write_json(data, output: str = None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        print(text)


def cmd_sections(document: Document, args) -> int:
    count = count_sections(document.content, args.heading)
    section, remainder = extract_section(document.content, args.heading)
    print(f'"{args.heading}" sections: {count}')
    print(f"Section nodes: {len(section)}  Remaining nodes: {len(remainder)}")
    if count > 1:
        print("Duplicate sections found - fix the document before updating it")
        return 1
    return 0


def cmd_parse(document: Document, args) -> int:
    section, _ = extract_section(document.content, args.heading)
    stories = ShellStoryParser().parse(section)
    _write_json([story.summary() for story in stories], args.output)
    return 0


def cmd_next(document: Document, args) -> int:
    section, _ = extract_section(document.content, args.heading)
    stories = ShellStoryParser().parse(section)
    story = find_next_unwritten_story(stories)
    if story is None:
        print("All shell stories have been written")
        return 0
    validate_dependencies(story, stories)
    _write_json(story.summary(), args.output)
    return 0


def cmd_render(document: Document, args) -> int:
    if args.section_only:
        section, _ = extract_section(document.content, args.heading)
        text = render_markdown(section)
    else:
        text = document_to_markdown(document)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {args.output}")
    else:
        print(text)
    return 0


def cmd_mark(document: Document, args) -> int:
    if not args.story or not args.url:
        print("❌ mark requires --story and --url")
        return 2
    if count_sections(document.content, args.heading) > 1:
        print(f'❌ Found more than one "{args.heading}" section, not updating')
        return 1

    section, _ = extract_section(document.content, args.heading)
    now = datetime.fromisoformat(args.timestamp.replace("Z", "+00:00")) if args.timestamp else None
    updated = add_completion_marker(section, args.story, args.url, now=now)
    content = replace_section(document.content, args.heading, updated)
    new_document = document.model_copy(update={"content": content})
    _write_json(new_document.to_dict(), args.output)
    return 0


COMMANDS = {
    'sections': cmd_sections,
    'parse': cmd_parse,
    'next': cmd_next,
    'render': cmd_render,
    'mark': cmd_mark,
}


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="StorySmith - shell stories in Jira epic descriptions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  storysmith sections epic.json                 # Check the Shell Stories section
  storysmith parse epic.json                    # List shell stories as JSON
  storysmith next epic.json                     # Next unwritten story
  storysmith render epic.json --section-only    # Markdown for prompts
  storysmith mark epic.json --story st001 --url https://x.atlassian.net/browse/PROJ-7 -o out.json
        """
    )

    parser.add_argument(
        'command',
        choices=list(COMMANDS),
        help='Command to execute'
    )

    parser.add_argument(
        'file',
        help='ADF JSON file (document, node list, or Jira issue payload)'
    )

    parser.add_argument(
        '--heading',
        default=settings.shell_stories_heading,
        help='Section heading label (default: %(default)s)'
    )

    parser.add_argument(
        '--story',
        help='Story id to mark (for mark command)'
    )

    parser.add_argument(
        '--url',
        help='Issue URL to link the story title to (for mark command)'
    )

    parser.add_argument(
        '--timestamp',
        help='ISO timestamp to stamp instead of the current time (for mark command)'
    )

    parser.add_argument(
        '--section-only',
        action='store_true',
        help='Render only the shell stories section (for render command)'
    )

    parser.add_argument(
        '--output', '-o',
        help='Write output to a file instead of stdout'
    )

    parser.add_argument(
        '--log-level',
        default=settings.log_level,
        help='Log level (default: %(default)s)'
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        document = load_document(Path(args.file))
        return COMMANDS[args.command](document, args)
    except StorySmithError as e:
        print(f"❌ {e}")
        return 1
    except (OSError, ValueError) as e:
        print(f"❌ Could not read {args.file}: {e}")
        logger.exception("Full error details:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
