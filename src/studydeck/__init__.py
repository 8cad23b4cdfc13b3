"""studydeck: flashcard study sessions with XP, levels, streaks and achievements."""

from studydeck.consts import VERSION

__version__ = VERSION
