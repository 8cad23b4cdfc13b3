# Infrastructure Adapters Package
from .local_store import StaticAchievementCatalog, YamlDeckRepository, YamlProfileStore, YamlReviewLog
from .remote import RemoteDataService

__all__ = [
    "RemoteDataService",
    "StaticAchievementCatalog",
    "YamlDeckRepository",
    "YamlProfileStore",
    "YamlReviewLog",
]
