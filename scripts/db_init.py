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
    from plog.db.session import init_db
    from plog.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    try:
        await init_db()
        print("✅ Database initialized successfully")

        await create_initial_data()

    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)

async def create_initial_data() -> None:
    """Create a demo member, post and comment thread for development"""
    from plog.db.session import AsyncSessionLocal
    from plog.models import Member, Post
    from plog.services.comment_service import CommentService
    from sqlalchemy import select

    print("👤 Creating initial data...")

    async with AsyncSessionLocal() as db:
        try:
            stmt = select(Member).where(Member.email == "demo@plog.dev")
            result = await db.execute(stmt)
            member = result.scalar_one_or_none()

            if member:
                print("ℹ️  Demo data already present")
                return

            member = Member(email="demo@plog.dev", nickname="demo")
            db.add(member)
            await db.flush()

            post = Post(member_id=member.id, title="Hello plog", content="First post")
            db.add(post)
            await db.commit()
            print(f"✅ Created demo member {member.id} and post {post.id}")

            comment_service = CommentService(db)
            root_id = await comment_service.create_comment(post.id, member.id, "First comment")
            for i in range(1, 8):
                await comment_service.create_comment(post.id, member.id, f"Reply {i}", root_id)
            print(f"✅ Created comment {root_id} with 7 replies")

        except Exception as e:
            await db.rollback()
            print(f"⚠️  Error creating initial data: {e}")

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from plog.db.session import engine
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

    from plog.db.session import engine
    from plog.models import Base

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ Database dropped successfully")
    except Exception as e:
        print(f"❌ Error dropping database: {e}")

async def reset_database() -> None:
    await drop_database(True)
    await init_database()

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
    subparsers.add_parser("seed", help="Seed demo data")

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
            asyncio.run(create_initial_data())

        elif args.command == "reset":
            if not args.confirm:
                print("⚠️  WARNING: This will drop ALL tables and data!")
                print("   Use --confirm flag to proceed")
                return

            asyncio.run(reset_database())

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
