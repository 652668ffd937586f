from .user import User
from .user_stats import UserStats, CategoryEngagement, DailyStats
from .edition import Edition, NewsItem
from .article import Article
from .interaction import UserArticleInteraction, InteractionNewsItem

__all__ = [
    "User",
    "UserStats",
    "CategoryEngagement",
    "DailyStats",
    "Edition",
    "NewsItem",
    "Article",
    "UserArticleInteraction",
    "InteractionNewsItem",
]
