"""Note creation helpers."""

from .creator import TEMPLATES, NoteExistsError, create_note, note_filename, render_note

__all__ = ["TEMPLATES", "NoteExistsError", "create_note", "note_filename", "render_note"]
