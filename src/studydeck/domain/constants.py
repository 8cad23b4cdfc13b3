"""Centralized constants for the studydeck application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Interval Policy ----------
MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS

INTERVAL_AGAIN_MS = 10 * MINUTE_MS
INTERVAL_HARD_MS = 15 * MINUTE_MS
INTERVAL_GOOD_MS = DAY_MS
INTERVAL_EASY_MS = 2 * DAY_MS

DEFAULT_EASE_FACTOR = 2.5

# ---------- Cards ----------
MIN_ALTERNATIVES = 2
MAX_ALTERNATIVES = 4
MIN_CARD_DIFFICULTY = 1
MAX_CARD_DIFFICULTY = 5
DEFAULT_CARD_DIFFICULTY = 3

# ---------- Gamification ----------
XP_PER_LEVEL = 100
DEFAULT_XP_PER_RATING = {"again": 0, "hard": 2, "good": 5, "easy": 8}
CARD_CREATED_XP = 10
DECK_CREATED_XP = 25

# ---------- Remote data service / HTTP ----------
DEFAULT_API_BASE_URL = "http://localhost:3000"
AUTH_TOKEN_HEADER = "X-Auth-Token"
REQUEST_TIMEOUT = 10.0

# ---------- Background work ----------
BACKGROUND_TIMEOUT = 10.0

# ---------- Server sessions ----------
SESSION_IDLE_TTL = 30 * 60.0
FINISHED_SESSION_TTL = 5 * 60.0
MAX_SESSIONS = 1000
