"""Create new Markdown notes from templates."""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

LOGGER = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w]+")
_WHITESPACE = re.compile(r"\s+")

TEMPLATES: dict[str, str] = {
    "empty": "",
    "basic": """# {title}

Created: {date}
Tags: {tags}

## Content

""",
    "meeting": """# Meeting: {title}

Date: {date}
Participants:
Tags: {tags}

## Agenda

-

## Notes

-

## Action Items

- [ ]
""",
    "blog": """---
title: "{title}"
date: "{date}"
tags: [{frontmatter_tags}]
draft: true
---

# {title}

## Introduction

""",
    "project": """# Project: {title}

Start Date: {date}
Status: Planning
Tags: {tags}

## Overview

## Goals

-

## Timeline

- [ ]

## Resources

-
""",
}


class NoteExistsError(FileExistsError):
    """Raised when a note with the same file name already exists."""


def note_filename(title: str) -> str:
    """Return the file name for a note titled ``title``."""
    stem = _NON_WORD.sub("-", title).strip("-").lower()
    return f"{stem or 'untitled'}.md"


def _clean_tags(tags: Iterable[str]) -> list[str]:
    cleaned = []
    for tag in tags:
        value = _WHITESPACE.sub("-", tag.strip().lstrip("#"))
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def render_note(
    title: str,
    *,
    template: str = "basic",
    tags: Iterable[str] = (),
    today: Optional[date] = None,
) -> str:
    """Render the body of a new note.

    Body templates list tags as inline ``#tag`` tokens and the ``blog``
    template lists them in its frontmatter, so a later scan finds them.

    Raises:
        ValueError: If ``template`` is unknown.
    """
    try:
        text = TEMPLATES[template]
    except KeyError:
        known = ", ".join(sorted(TEMPLATES))
        raise ValueError(f"Unknown template {template!r}; expected one of: {known}") from None
    cleaned = _clean_tags(tags)
    return text.format(
        title=title,
        date=(today or date.today()).isoformat(),
        tags=" ".join(f"#{tag}" for tag in cleaned),
        frontmatter_tags=", ".join(cleaned),
    )


def create_note(
    title: str,
    *,
    target_dir: Path,
    template: str = "basic",
    tags: Iterable[str] = (),
    today: Optional[date] = None,
) -> Path:
    """Write a new note under ``target_dir`` and return its path.

    Args:
        title: Note title; also determines the file name.
        target_dir: Directory to create the note in; created when missing.
        template: One of ``empty``, ``basic``, ``meeting``, ``blog``, ``project``.
        tags: Tags to record in the note.
        today: Date stamped into the template; defaults to today.

    Returns:
        Path: The created file.

    Raises:
        ValueError: If the title is blank or the template is unknown.
        NoteExistsError: If the file already exists.
    """
    if not title.strip():
        raise ValueError("A note title is required.")
    content = render_note(title, template=template, tags=tags, today=today)

    directory = Path(target_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / note_filename(title)
    try:
        with path.open("x", encoding="utf-8") as handle:
            handle.write(content)
    except FileExistsError as exc:
        raise NoteExistsError(f"{path} already exists.") from exc

    LOGGER.info("Created note %s", path)
    return path


__all__ = ["NoteExistsError", "TEMPLATES", "create_note", "note_filename", "render_note"]
