"""Tests for engagement rollups."""

import pytest
from datetime import datetime, timedelta
from app.core.errors import NotFoundError
from app.models.interaction import InteractionNewsItem, UserArticleInteraction
from app.models.user_stats import UserStats
from app.services.engagement import (
    EngagementAggregator,
    average_read_minutes,
    current_period_read_count,
    progress_percentage,
    top_categories,
)
from app.services.interaction_recorder import InteractionRecorder

NOW = datetime(2025, 4, 6, 19, 30)
WINDOW_START = datetime(2025, 4, 6, 18, 0)


def make_stats(categories) -> UserStats:
    stats = UserStats.empty(user_id=1)
    for name, (time_spent, articles_read) in categories:
        stats.fold_category(name, time_spent, articles_read)
    return stats


def make_interaction(completed=False, when=NOW, items=()) -> UserArticleInteraction:
    interaction = UserArticleInteraction(
        user_id=1, document_id=1, time_spent=0, completed=completed, interaction_date=when
    )
    for news_item_id, item_completed, item_when in items:
        interaction.news_items[news_item_id] = InteractionNewsItem(
            news_item_id=news_item_id,
            time_spent=0,
            completed=item_completed,
            interaction_date=item_when,
        )
    return interaction


@pytest.mark.unit
class TestTopCategories:
    def test_ranked_by_time_plus_articles(self):
        """Scores A=11, B=50, C=5 rank as B, A, C."""
        stats = make_stats([("A", (10, 1)), ("B", (50, 0)), ("C", (0, 5))])

        assert top_categories(stats) == ["B", "A", "C"]

    def test_at_most_three(self):
        stats = make_stats([(f"cat{i}", (i, 0)) for i in range(6)])

        assert top_categories(stats) == ["cat5", "cat4", "cat3"]

    def test_ties_keep_insertion_order(self):
        stats = make_stats([("first", (5, 0)), ("second", (4, 1)), ("third", (5, 0))])

        assert top_categories(stats) == ["first", "second", "third"]

    def test_no_stats(self):
        assert top_categories(None) == []
        assert top_categories(UserStats.empty(user_id=1)) == []


@pytest.mark.unit
class TestProgressPercentage:
    @pytest.mark.parametrize(
        "read,total,expected",
        [(4, 10, 40), (0, 0, 0), (12, 10, 100), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 0, 0)],
    )
    def test_progress_percentage(self, read, total, expected):
        assert progress_percentage(read, total) == expected


@pytest.mark.unit
class TestCurrentPeriodReadCount:
    def test_counts_completed_news_items_in_window(self):
        """Only completed sub-entries on or after the window start count."""
        interactions = [
            make_interaction(
                items=[
                    (1, True, NOW),
                    (2, True, WINDOW_START),
                    (3, False, NOW),
                    (4, True, WINDOW_START - timedelta(seconds=1)),
                ]
            ),
            make_interaction(items=[(1, True, NOW)]),
        ]

        assert current_period_read_count(interactions, NOW) == 3

    def test_falls_back_to_top_level_interactions(self):
        """Without sub-entries the interactions themselves are counted."""
        interactions = [
            make_interaction(completed=True, when=NOW),
            make_interaction(completed=True, when=WINDOW_START - timedelta(hours=1)),
            make_interaction(completed=False, when=NOW),
        ]

        assert current_period_read_count(interactions, NOW) == 1

    def test_sub_entries_take_precedence(self):
        """Once any interaction has sub-entries, top-level flags are ignored."""
        interactions = [
            make_interaction(completed=True, when=NOW),
            make_interaction(items=[(1, False, NOW)]),
        ]

        assert current_period_read_count(interactions, NOW) == 0

    def test_empty(self):
        assert current_period_read_count([], NOW) == 0


@pytest.mark.unit
class TestAverageReadMinutes:
    def test_average(self):
        stats = UserStats.empty(user_id=1)
        stats.total_time_spent = 900
        stats.articles_read = 4

        assert average_read_minutes(stats) == 4

    def test_nothing_read(self):
        assert average_read_minutes(None) == 0
        assert average_read_minutes(UserStats.empty(user_id=1)) == 0


@pytest.mark.unit
class TestEngagementAggregator:
    def test_summary(self, db_session, test_user, test_edition):
        """Totals, top categories and progress against the current edition."""
        recorder = InteractionRecorder(db_session)
        recorder.record(test_user.id, f"{test_edition.id}_2", 120, True, news_item_id=2, now=NOW)
        recorder.record(test_user.id, f"{test_edition.id}_3", 60, False, news_item_id=3, now=NOW)

        summary = EngagementAggregator(db_session).summary(test_user.id, now=NOW)

        assert summary == {
            "user_id": test_user.id,
            "edition_key": "2025-04-06_18:00",
            "total_time_spent": 120,
            "articles_read": 1,
            "average_read_minutes": 2,
            "top_categories": ["Technology"],
            "current_period_read": 1,
            "total_articles": 3,
            "progress_percentage": 33,
        }

    def test_summary_without_edition(self, db_session, test_user):
        summary = EngagementAggregator(db_session).summary(test_user.id, now=NOW)

        assert summary["total_articles"] == 0
        assert summary["progress_percentage"] == 0
        assert summary["top_categories"] == []

    def test_summary_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            EngagementAggregator(db_session).summary(12345, now=NOW)
