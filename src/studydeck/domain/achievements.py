"""Default achievement catalog and the metric names its rules check."""

from .models import AchievementDefinition

# Metric names an AchievementDefinition.condition may refer to.
TOTAL_DECKS = "total_decks"
TOTAL_CARDS = "total_cards"
TOTAL_SESSIONS = "total_sessions"
STUDY_STREAK = "study_streak"
LEVEL = "level"
SESSION_ACCURACY = "session_accuracy"
CARDS_PER_SESSION = "cards_per_session"

DEFAULT_ACHIEVEMENTS: list[AchievementDefinition] = [
    AchievementDefinition(
        id="first_deck",
        name="First Deck",
        description="Create your first flashcard deck",
        icon="🎯",
        category="creation",
        condition=TOTAL_DECKS,
        target=1,
        xp_reward=50,
    ),
    AchievementDefinition(
        id="five_decks",
        name="Content Creator",
        description="Create 5 decks",
        icon="📚",
        category="creation",
        condition=TOTAL_DECKS,
        target=5,
        xp_reward=100,
    ),
    AchievementDefinition(
        id="first_card",
        name="First Card",
        description="Create your first flashcard",
        icon="📝",
        category="creation",
        condition=TOTAL_CARDS,
        target=1,
        xp_reward=10,
    ),
    AchievementDefinition(
        id="fifty_cards",
        name="Card Master",
        description="Create 50 cards",
        icon="🃏",
        category="creation",
        condition=TOTAL_CARDS,
        target=50,
        xp_reward=200,
    ),
    AchievementDefinition(
        id="dedicated_student",
        name="Dedicated Student",
        description="Complete 10 study sessions",
        icon="📖",
        category="study",
        condition=TOTAL_SESSIONS,
        target=10,
        xp_reward=150,
    ),
    AchievementDefinition(
        id="speedster",
        name="Speedster",
        description="Review 20 cards in a single session",
        icon="⚡",
        category="study",
        condition=CARDS_PER_SESSION,
        target=20,
        xp_reward=150,
    ),
    AchievementDefinition(
        id="streak_3",
        name="Consistent",
        description="Keep a 3-day study streak",
        icon="🔥",
        category="streak",
        condition=STUDY_STREAK,
        target=3,
        xp_reward=75,
    ),
    AchievementDefinition(
        id="study_streak_7",
        name="Study Week",
        description="Study for 7 consecutive days",
        icon="🔥",
        category="streak",
        condition=STUDY_STREAK,
        target=7,
        xp_reward=200,
    ),
    AchievementDefinition(
        id="study_streak_30",
        name="Month of Dedication",
        description="Study for 30 consecutive days",
        icon="🏆",
        category="streak",
        condition=STUDY_STREAK,
        target=30,
        xp_reward=500,
    ),
    AchievementDefinition(
        id="accurate",
        name="Accurate",
        description="Remember at least 80% of the cards in a session",
        icon="🎯",
        category="accuracy",
        condition=SESSION_ACCURACY,
        target=80,
        xp_reward=100,
    ),
    AchievementDefinition(
        id="perfectionist",
        name="Perfectionist",
        description="Remember at least 95% of the cards in a session",
        icon="💎",
        category="accuracy",
        condition=SESSION_ACCURACY,
        target=95,
        xp_reward=300,
    ),
    AchievementDefinition(
        id="level_10",
        name="Apprentice",
        description="Reach level 10",
        icon="⭐",
        category="milestone",
        condition=LEVEL,
        target=10,
        xp_reward=0,
    ),
]
