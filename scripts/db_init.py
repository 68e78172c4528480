#!/usr/bin/env python3
"""
Database initialization script
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

async def init_database() -> None:
    """Initialize database with tables"""
    from quietpost.db.session import init_db
    from quietpost.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    try:
        await init_db()
        print("✅ Database initialized successfully")
    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)

async def seed_demo_post() -> None:
    """Create a demo post with a couple of threads for development"""
    from quietpost.db.session import AsyncSessionLocal
    from quietpost.repositories.comment_store import CommentStore
    from quietpost.schemas.participant_schema import Participant
    from quietpost.schemas.post_schema import PostCreate
    from quietpost.services.post_service import PostService
    from quietpost.services.thread_service import ThreadService

    print("📝 Seeding demo post...")

    async with AsyncSessionLocal() as db:
        author = Participant.user("demo-author")
        post = await PostService(db).create_post(
            author.user_id,
            PostCreate(
                title="Letters nobody sends",
                content="Some things are easier to write to strangers than to friends."
            )
        )
        post_id = post.id

        threads = ThreadService(CommentStore(db))
        visitor = Participant.anonymous("demo-visitor-1")
        result = await threads.add_comment(post_id, "This one stayed with me all day.", visitor)
        await threads.add_author_reply(post_id, result.thread_key, "Thank you for reading it.", author)
        await threads.add_comment(post_id, "Which letter did you almost send?", Participant.anonymous("demo-visitor-2"))

        print(f"✅ Created post {post_id} with 2 threads")
        print(f"   Author token: {create_demo_token(author.user_id)}")

def create_demo_token(user_id: str) -> str:
    from quietpost.services.identity_service import create_access_token
    return create_access_token(user_id)

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from quietpost.db.session import engine
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False

async def drop_database(confirm: bool = False) -> None:
    """Drop all database tables"""
    if not confirm:
        print("⚠️  WARNING: This will drop ALL tables and data!")
        print("   Use --confirm flag to proceed")
        return

    from quietpost.db.session import engine
    from quietpost.models import Base

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ Database dropped successfully")
    except Exception as e:
        print(f"❌ Error dropping database: {e}")

def main() -> None:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Database Initialization")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init command
    subparsers.add_parser("init", help="Initialize database")

    # Check command
    subparsers.add_parser("check", help="Check database connection")

    # Drop command
    drop_parser = subparsers.add_parser("drop", help="Drop database (DANGEROUS!)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm drop")

    # Seed command
    subparsers.add_parser("seed", help="Seed a demo post with threads")

    # Reset command
    reset_parser = subparsers.add_parser("reset", help="Drop and reinitialize")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "init":
            asyncio.run(init_database())

        elif args.command == "check":
            success = asyncio.run(check_database_connection())
            sys.exit(0 if success else 1)

        elif args.command == "drop":
            asyncio.run(drop_database(args.confirm))

        elif args.command == "seed":
            asyncio.run(seed_demo_post())

        elif args.command == "reset":
            if not args.confirm:
                print("⚠️  WARNING: This will drop ALL tables and data!")
                print("   Use --confirm flag to proceed")
                return

            asyncio.run(drop_database(True))
            asyncio.run(init_database())

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
