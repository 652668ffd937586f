from app.schemas.user import (
    User,
    UserList,
    UserRegister,
    UserLogin,
    UserUpdate,
    ProviderSignIn,
    TokenResponse,
)
from app.schemas.stats import (
    UserStats,
    UserStatsUpdate,
    DailyStatsUpdate,
    EngagementSummary,
)
from app.schemas.edition import (
    Edition,
    NewsItem,
    EditionIngest,
    ViewRequest,
    ViewResponse,
    TrendingTopics,
)
from app.schemas.interaction import (
    Interaction,
    InteractionCreate,
    InteractionList,
    InteractionRecorded,
)
from app.schemas.article import Article, ArticleViewResponse

__all__ = [
    "User",
    "UserList",
    "UserRegister",
    "UserLogin",
    "UserUpdate",
    "ProviderSignIn",
    "TokenResponse",
    "UserStats",
    "UserStatsUpdate",
    "DailyStatsUpdate",
    "EngagementSummary",
    "Edition",
    "NewsItem",
    "EditionIngest",
    "ViewRequest",
    "ViewResponse",
    "TrendingTopics",
    "Interaction",
    "InteractionCreate",
    "InteractionList",
    "InteractionRecorded",
    "Article",
    "ArticleViewResponse",
]
