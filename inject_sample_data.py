#!/usr/bin/env python3
"""
Script to inject a sample edition, a few articles and a demo user.
Uses the application's own models, so DATABASE_URL and SECRET_KEY must be
set (or present in .env).

Usage: python3 inject_sample_data.py
"""

import sys

from app.core.config import settings
from app.core.database import Database
from app.core.errors import ConflictError
from app.models.article import Article
from app.services.edition_builder import EditionBuilder
from app.services.editions import resolve_edition_key
from app.services.users import UserService

DEMO_USER = {
    "email": "demo@example.com",
    "name": "Demo Reader",
    "password": "demo-password",
}

SAMPLE_SUMMARY = {
    "overall_introduction": (
        "Markets steadied after a volatile week, a new generation of chips "
        "promises cheaper on-device AI, and climate negotiators closed in on a "
        "deal on methane reporting."
    ),
    "categories": {
        "Technology": {
            "title": "**New chips** bring [AI] to laptops",
            "summary": (
                "Several manufacturers announced processors with dedicated "
                "neural units, aiming to run assistant features locally instead "
                "of in the cloud."
            ),
            "article_count": 12,
            "source_count": 5,
        },
        "Business": {
            "title": "Markets steady after a volatile week",
            "summary": (
                "Stock indexes recovered most of their losses as bond yields "
                "eased and quarterly earnings came in slightly ahead of "
                "expectations across sectors."
            ),
            "article_count": 9,
            "source_count": 4,
        },
        "Science": {
            "title": "Methane reporting deal",
            "summary": "Too short to publish.",
            "article_count": 2,
            "source_count": 1,
        },
    },
}

SAMPLE_ARTICLES = [
    {
        "title": "How on-device AI changes battery life",
        "content": "Running models locally trades network latency for power draw...",
        "summary": "A look at the power budget of local inference.",
        "category": "Technology",
        "day_time_category": "morning",
        "tags": ["ai", "hardware"],
    },
    {
        "title": "What the bond market is telling us",
        "content": "Yields are the quiet signal behind this week's rally...",
        "summary": "Why yields matter for equities.",
        "category": "Business",
        "day_time_category": "evening",
        "tags": ["markets"],
    },
]


def inject_sample_data():
    """Inject the sample edition, articles and demo user."""
    print("🔌 Connecting to database...")
    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    database.create_all()
    db = database.session()

    try:
        key = resolve_edition_key()
        try:
            edition = EditionBuilder(db).create_from_summary(key, SAMPLE_SUMMARY)
            print(f"✓ Added edition {edition.key} (ID: {edition.id})")
            for item in edition.news_items:
                print(f"  {item.article_id}  [{item.category}] {item.title}")
        except ConflictError:
            db.rollback()
            print(f"⊘ Edition already exists: {key}")

        added_count = 0
        for article_data in SAMPLE_ARTICLES:
            existing = (
                db.query(Article).filter(Article.title == article_data["title"]).first()
            )
            if existing:
                print(f"⊘ Article already exists: {article_data['title']}")
                continue
            db.add(Article(**article_data))
            added_count += 1
        db.commit()
        print(f"✓ Added {added_count} sample article(s)")

        users = UserService(db)
        if users.find_by_email(DEMO_USER["email"]):
            print(f"⊘ User already exists: {DEMO_USER['email']}")
        else:
            user = users.register(**DEMO_USER)
            print(f"✓ Added user: {user.email} (ID: {user.id})")
            print(f"  Password: {DEMO_USER['password']}")

    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise

    finally:
        db.close()
        database.dispose()
        print()
        print("✓ Database connection closed")


if __name__ == "__main__":
    print("=" * 60)
    print("  Sample Data Injection Script")
    print("=" * 60)
    print()

    try:
        inject_sample_data()
    except Exception:
        sys.exit(1)
