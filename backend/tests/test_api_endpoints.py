"""Tests for the HTTP surface."""

import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from app.models.edition import Edition
from app.models.user import User
from app.models.user_stats import UserStats

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}
BRIDGE_HEADERS = {"X-Auth-Bridge-Token": "test-bridge-token"}
TEST_PASSWORD = "correct-horse-battery"


@pytest.mark.integration
class TestAuthAPI:
    """Registration, sign-in and session cookies."""

    def test_register(self, client, db_session):
        response = client.post(
            "/api/auth/register",
            json={"email": "reader@example.com", "name": "Reader", "password": TEST_PASSWORD},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "reader@example.com"
        assert data["token_type"] == "bearer"
        assert "auth_token" in response.cookies
        assert "refresh_token" in response.cookies
        assert db_session.query(UserStats).count() == 1

    def test_register_duplicate(self, client, test_user):
        response = client.post(
            "/api/auth/register",
            json={"email": test_user.email, "name": "Again", "password": TEST_PASSWORD},
        )
        assert response.status_code == 409

    def test_register_short_password(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "reader@example.com", "name": "Reader", "password": "short"},
        )
        assert response.status_code == 422

    def test_login(self, client, test_user):
        response = client.post(
            "/api/auth/login", json={"email": "TEST@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id
        assert "auth_token" in response.cookies

    def test_login_wrong_password(self, client, test_user):
        response = client.post(
            "/api/auth/login", json={"email": test_user.email, "password": "wrong-password"}
        )
        assert response.status_code == 401

    def test_provider_sign_in(self, client):
        payload = {
            "email": "octo@example.com",
            "name": "Octo",
            "provider": "github",
            "providerAccountId": "gh-42",
            "image": "https://avatars.example.com/octo.png",
        }

        first = client.post("/api/auth/oauth", json=payload, headers=BRIDGE_HEADERS)
        second = client.post("/api/auth/oauth", json=payload, headers=BRIDGE_HEADERS)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["user"]["id"] == second.json()["user"]["id"]
        assert first.json()["user"]["auth_provider"] == "github"

    @pytest.mark.parametrize("headers", [{}, {"X-Auth-Bridge-Token": "guessed"}])
    def test_provider_sign_in_requires_bridge_token(self, client, db_session, headers):
        """Without the shared secret no account is created and no token issued."""
        response = client.post(
            "/api/auth/oauth",
            json={"email": "victim@gmail.com", "name": "Victim", "provider": "google"},
            headers=headers,
        )

        assert response.status_code == 403
        assert "auth_token" not in response.cookies
        assert db_session.query(User).count() == 0

    def test_me(self, authenticated_client, test_user):
        response = authenticated_client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_me_with_bearer_header(self, client, auth_headers):
        assert client.get("/api/auth/me", headers=auth_headers).status_code == 200

    def test_me_unauthenticated(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_refresh(self, client, test_user):
        login = client.post(
            "/api/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
        )
        client.cookies.clear()
        client.cookies.set("refresh_token", login.json()["refresh_token"])

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        assert "auth_token" in response.cookies

    def test_refresh_without_cookie(self, client):
        assert client.post("/api/auth/refresh").status_code == 401

    def test_logout(self, authenticated_client):
        response = authenticated_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"


@pytest.mark.integration
class TestUsersAPI:
    """User management and ownership rules."""

    def test_list_users(self, client, test_user, other_user):
        response = client.get("/api/users/?limit=1", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert len(data["items"]) == 1

    def test_list_users_requires_admin_token(self, authenticated_client, other_user):
        """A signed-in reader cannot enumerate other accounts."""
        assert authenticated_client.get("/api/users/").status_code == 403
        response = authenticated_client.get(
            "/api/users/", headers={"X-Admin-Token": "wrong-token"}
        )
        assert response.status_code == 403

    def test_get_own_user(self, authenticated_client, test_user):
        response = authenticated_client.get(f"/api/users/{test_user.id}")

        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_get_other_user_forbidden(self, authenticated_client, other_user):
        assert authenticated_client.get(f"/api/users/{other_user.id}").status_code == 403

    def test_update_user(self, authenticated_client, test_user):
        response = authenticated_client.put(
            f"/api/users/{test_user.id}", json={"name": "Renamed Reader"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed Reader"

    def test_cannot_update_other_user(self, authenticated_client, other_user):
        response = authenticated_client.put(
            f"/api/users/{other_user.id}", json={"name": "Hijacked"}
        )
        assert response.status_code == 403

    def test_soft_delete(self, authenticated_client, db_session, test_user):
        response = authenticated_client.delete(f"/api/users/{test_user.id}")

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(User, test_user.id).is_active is False

    def test_hard_delete(self, authenticated_client, db_session, test_user):
        response = authenticated_client.delete(
            f"/api/users/{test_user.id}?hard_delete=true"
        )

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(User, test_user.id) is None


@pytest.mark.integration
class TestStatsAPI:
    def test_get_stats(self, authenticated_client, test_user):
        response = authenticated_client.get(f"/api/users/{test_user.id}/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["articles_read"] == 0
        assert data["category_engagement"] == []

    def test_stats_of_other_user_forbidden(self, authenticated_client, other_user):
        response = authenticated_client.get(f"/api/users/{other_user.id}/stats")
        assert response.status_code == 403

    def test_overwrite_stats(self, authenticated_client, test_user):
        response = authenticated_client.put(
            f"/api/users/{test_user.id}/stats",
            json={
                "totalTimeSpent": 300,
                "articlesRead": 4,
                "categoryEngagement": {"Science": {"timeSpent": 200, "articlesRead": 3}},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_time_spent"] == 300
        assert data["articles_read"] == 4
        assert data["card_reading_time"] == 0
        assert data["category_engagement"] == [
            {"category": "Science", "time_spent": 200, "articles_read": 3}
        ]

    def test_negative_stats_rejected(self, authenticated_client, test_user):
        response = authenticated_client.put(
            f"/api/users/{test_user.id}/stats", json={"articlesRead": -1}
        )
        assert response.status_code == 422

    def test_set_daily_stats(self, authenticated_client, test_user):
        url = f"/api/users/{test_user.id}/daily-stats"
        authenticated_client.post(url, json={"date": "2025-04-06", "timeSpent": 60})
        response = authenticated_client.post(
            url, json={"date": "2025-04-06", "timeSpent": 90, "articlesRead": 2}
        )

        assert response.status_code == 200
        assert response.json()["daily_stats"] == [
            {"date": "2025-04-06", "time_spent": 90, "articles_read": 2}
        ]

    def test_summary(self, authenticated_client, test_user, current_edition):
        authenticated_client.post(
            f"/api/users/{test_user.id}/interactions",
            json={
                "articleId": f"{current_edition.id}_2",
                "newsItemId": 2,
                "timeSpent": 120,
                "completed": True,
            },
        )

        response = authenticated_client.get(f"/api/users/{test_user.id}/stats/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["edition_key"] == current_edition.key
        assert data["articles_read"] == 1
        assert data["top_categories"] == ["Technology"]
        assert data["current_period_read"] == 1
        assert data["total_articles"] == 3
        assert data["progress_percentage"] == 33


@pytest.mark.integration
class TestInteractionsAPI:
    def test_record_interaction(self, authenticated_client, test_user, test_edition):
        url = f"/api/users/{test_user.id}/interactions"
        body = {"articleId": f"{test_edition.id}_2", "newsItemId": "2", "timeSpent": 30}

        authenticated_client.post(url, json=body)
        response = authenticated_client.post(url, json=body)

        assert response.status_code == 201
        interaction = response.json()["interaction"]
        assert interaction["document_id"] == test_edition.id
        assert interaction["time_spent"] == 60
        assert interaction["news_items"][0]["news_item_id"] == 2
        assert interaction["news_items"][0]["time_spent"] == 60
        assert len(interaction["news_items"]) == 1

    def test_completed_interaction_counts_once(
        self, authenticated_client, db_session, test_user, test_edition
    ):
        url = f"/api/users/{test_user.id}/interactions"
        body = {
            "articleId": f"{test_edition.id}_3",
            "newsItemId": 3,
            "timeSpent": 20,
            "completed": True,
        }
        authenticated_client.post(url, json=body)
        authenticated_client.post(url, json=body)

        stats = authenticated_client.get(f"/api/users/{test_user.id}/stats").json()
        assert stats["articles_read"] == 1
        assert stats["total_time_spent"] == 40

    @pytest.mark.parametrize(
        "body",
        [
            {"articleId": "abc_2", "newsItemId": 2},
            {"articleId": "1_2", "newsItemId": "two"},
            {"newsItemId": 2},
            {"articleId": "1_2", "newsItemId": 2, "timeSpent": -10},
            {"articleId": "99999999999999999999999_1", "newsItemId": 1},
            {"articleId": 2147483648, "timeSpent": 5},
        ],
    )
    def test_invalid_interaction(self, authenticated_client, test_user, test_edition, body):
        response = authenticated_client.post(
            f"/api/users/{test_user.id}/interactions", json=body
        )

        assert response.status_code == 400
        assert "detail" in response.json()

    def test_unknown_document(self, authenticated_client, test_user):
        response = authenticated_client.post(
            f"/api/users/{test_user.id}/interactions",
            json={"articleId": "999_1", "newsItemId": 1},
        )
        assert response.status_code == 404

    def test_unknown_news_item(self, authenticated_client, test_user, test_edition):
        response = authenticated_client.post(
            f"/api/users/{test_user.id}/interactions",
            json={"articleId": f"{test_edition.id}_100", "newsItemId": 100, "completed": True},
        )
        assert response.status_code == 404

        stats = authenticated_client.get(f"/api/users/{test_user.id}/stats").json()
        assert stats["articles_read"] == 0

    def test_record_for_other_user_forbidden(
        self, authenticated_client, other_user, test_edition
    ):
        response = authenticated_client.post(
            f"/api/users/{other_user.id}/interactions",
            json={"articleId": f"{test_edition.id}_1", "newsItemId": 1},
        )
        assert response.status_code == 403

    def test_requires_authentication(self, client, test_user, test_edition):
        response = client.post(
            f"/api/users/{test_user.id}/interactions",
            json={"articleId": f"{test_edition.id}_1", "newsItemId": 1},
        )
        assert response.status_code == 401

    def test_list_interactions(self, authenticated_client, test_user, test_edition, test_article):
        url = f"/api/users/{test_user.id}/interactions"
        authenticated_client.post(url, json={"articleId": str(test_article.id), "timeSpent": 5})
        authenticated_client.post(
            url,
            json={"articleId": f"{test_edition.id}_1", "newsItemId": 1, "completed": True},
        )

        response = authenticated_client.get(f"{url}?completed=true")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["document_id"] == test_edition.id

    def test_store_failure_is_503(self, authenticated_client, test_user, test_edition):
        with patch(
            "app.services.interaction_recorder.InteractionRecorder.record",
            side_effect=OperationalError("UPDATE", {}, Exception("database is locked")),
        ):
            response = authenticated_client.post(
                f"/api/users/{test_user.id}/interactions",
                json={"articleId": f"{test_edition.id}_1", "newsItemId": 1},
            )

        assert response.status_code == 503


@pytest.mark.integration
class TestEditionsAPI:
    def test_get_current_edition(self, client, current_edition):
        response = client.get("/api/editions/current")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == current_edition.id
        assert [item["article_id"] for item in data["news_items"]] == [
            f"{current_edition.id}_1",
            f"{current_edition.id}_2",
            f"{current_edition.id}_3",
        ]

    def test_get_edition_by_date(self, client, test_edition):
        response = client.get("/api/editions/current?date=2025-04-06_18:00")

        assert response.status_code == 200
        assert response.json()["key"] == "2025-04-06_18:00"

    def test_missing_edition(self, client):
        response = client.get("/api/editions/current?date=2020-01-01_06:00")

        assert response.status_code == 404
        assert response.json()["details"] == {"date_key": "2020-01-01_06:00"}

    def test_get_edition_by_id(self, client, test_edition):
        response = client.get(f"/api/editions/{test_edition.id}")

        assert response.status_code == 200
        assert len(response.json()["news_items"]) == 3

    def test_increment_view(self, client, test_edition):
        body = {"articleId": f"{test_edition.id}_2", "newsItemId": 2}

        client.post("/api/editions/view", json=body)
        response = client.post("/api/editions/view", json=body)

        assert response.status_code == 200
        assert response.json() == {"success": True, "views": 2}

    @pytest.mark.parametrize(
        "body,status_code",
        [
            ({"articleId": "7", "newsItemId": 2}, 400),
            ({"articleId": "1_2"}, 400),
            ({"articleId": "999_2", "newsItemId": 2}, 404),
        ],
    )
    def test_increment_view_errors(self, client, test_edition, body, status_code):
        assert client.post("/api/editions/view", json=body).status_code == status_code

    def test_popular_and_trending(self, client, current_edition, db_session):
        current_edition.news_items[2].views = 10
        db_session.commit()

        popular = client.get("/api/editions/current/popular").json()
        trending = client.get("/api/editions/current/trending").json()

        assert popular[0]["item_id"] == 3
        assert trending["edition_key"] == current_edition.key
        assert sorted(trending["topics"]) == ["Business", "Overview", "Technology"]

    def test_ingest_edition(self, client, db_session, sample_summary):
        response = client.post(
            "/api/editions/",
            json={"date": "2025-04-06_18:00", **sample_summary},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["key"] == "2025-04-06_18:00"
        assert [item["category"] for item in data["news_items"]] == [
            "Overview",
            "Technology",
            "Business & Finance",
        ]
        assert db_session.query(Edition).count() == 1

    def test_ingest_requires_admin_token(self, client, sample_summary):
        response = client.post(
            "/api/editions/", json={"date": "2025-04-06_18:00", **sample_summary}
        )
        assert response.status_code == 403

    def test_ingest_duplicate(self, client, test_edition, sample_summary):
        response = client.post(
            "/api/editions/",
            json={"date": test_edition.key, **sample_summary},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 409

    def test_ingest_bad_key(self, client, sample_summary):
        response = client.post(
            "/api/editions/",
            json={"date": "2025-04-06_12:00", **sample_summary},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestArticlesAPI:
    def test_get_article(self, client, test_article):
        response = client.get(f"/api/articles/{test_article.id}")

        assert response.status_code == 200
        assert response.json()["category"] == "Science"

    def test_increment_article_view(self, client, test_article):
        client.post(f"/api/articles/{test_article.id}/view")
        response = client.post(f"/api/articles/{test_article.id}/view")

        assert response.status_code == 200
        assert response.json() == {"success": True, "view_count": 2}

    def test_unknown_article(self, client):
        assert client.post("/api/articles/9999/view").status_code == 404


@pytest.mark.integration
class TestServiceEndpoints:
    def test_root(self, client):
        assert client.get("/").json()["name"] == "Envisage"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
