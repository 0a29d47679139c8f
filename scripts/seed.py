"""Populate a development database with users, news and comment threads.

Prints a bearer token per seeded user so the protected routes can be
tried straight away, e.g.::

    curl -H "Authorization: Bearer <token>" -X POST localhost:8000/news ...
"""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.auth import TokenCodec
from app.config import settings
from app.database import Base, async_session, engine
from app.models import Article, Comment, User

CATEGORIES = ["world", "business", "technology", "science", "sport", "culture", "health"]


async def seed(small: bool = False) -> None:
    num_users = 5 if small else 50
    num_articles = 40 if small else 5000
    max_comments = 3 if small else 8

    print(f"Seeding: {num_users} users, {num_articles} news articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(
                username=f"user_{i:04d}",
                email=f"user_{i:04d}@example.com",
                avatar=f"https://i.pravatar.cc/150?u={i}",
                # Accounts are normally created by the account service.
                password_hash="!seeded-account-no-login",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        batch_size = 500
        total_comments = 0
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            for i in range(batch_start, batch_end):
                category = random.choice(CATEGORIES)
                session.add(
                    Article(
                        title=f"News {i}: what changed in {category} this week",
                        content=f"Full story number {i}. " * 20,
                        thumbnail=f"https://picsum.photos/seed/{i}/640/360",
                        category=category,
                        views=random.randint(0, 5000),
                        created_at=datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 525600)),
                        author_id=random.choice(users).id,
                    )
                )
            await session.flush()

            result = await session.execute(
                select(Article.id).order_by(Article.id.desc()).limit(batch_end - batch_start)
            )
            for news_id in result.scalars().all():
                thread: list[Comment] = []
                for _ in range(random.randint(0, max_comments)):
                    # About a third of comments reply to an earlier one in the same thread.
                    parent = random.choice(thread) if thread and random.random() < 0.33 else None
                    comment = Comment(
                        content=f"Comment by {random.choice(users).username} on story {news_id}.",
                        author_id=random.choice(users).id,
                        news_id=news_id,
                        reply_to_id=parent.id if parent else None,
                    )
                    session.add(comment)
                    await session.flush()
                    thread.append(comment)
                total_comments += len(thread)

            print(f"  Batch {batch_start}-{batch_end}: news created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  News: {num_articles}")
    print(f"  Comments: {total_comments}")

    codec = TokenCodec(
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    print("\nBearer tokens:")
    for user in users[:5]:
        print(f"  {user.username}: {codec.encode(user.id)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the news database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (40 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
