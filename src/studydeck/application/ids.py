"""Identifier generation for review events and study sessions."""

from ulid import ULID


def generate_event_id() -> str:
    """Generate a sortable, unique review event ID using ULID."""
    return f"rev_{ULID()}"


def generate_session_id() -> str:
    return f"ses_{ULID()}"
