"""
run_sync.py

Refresh the cached post streams of your Classroom courses and print the
combined feed, newest first.

Usage:
    python run_sync.py
    python run_sync.py --course 123456 --all-pages
    python run_sync.py --show coursework --limit 20
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from sync.posts import DiskCache, DisplayOption, PostFeed, SyncSession
from sync.posts.classroom import ClassroomListSource, get_all_courses, get_classroom_service
from sync.posts.settings import (
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    archived_course_ids,
    log_level,
    page_size,
    resolve_cache_dir,
)

logger = logging.getLogger("main")

SHOW_CHOICES = {
    "all": DisplayOption.ALL_POSTS,
    "announcements": DisplayOption.ANNOUNCEMENTS,
    "coursework": DisplayOption.COURSE_WORK,
    "materials": DisplayOption.COURSE_MATERIAL,
}


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync Classroom announcements, coursework and materials into the local cache",
    )
    parser.add_argument(
        "--course",
        action="append",
        default=[],
        help="Course id to sync. Can be used multiple times. Defaults to every active course.",
    )
    parser.add_argument("--cache-dir", default=None, help="Directory holding the JSON cache")
    parser.add_argument("--all-pages", action="store_true", help="Follow page tokens to the last page")
    parser.add_argument("--bypass-cache", action="store_true", help="Always refresh from the network")
    parser.add_argument("--clear-cache", action="store_true", help="Empty the cache of the selected courses first")
    parser.add_argument("--show", default="all", choices=sorted(SHOW_CHOICES), help="Which posts to print")
    parser.add_argument("--limit", type=int, default=50, help="Maximum posts to print (0 = all)")
    parser.add_argument(
        "--log-level",
        default=log_level(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def format_post(post) -> str:
    when = post.creation_date.strftime("%Y-%m-%d %H:%M")
    title = post.title or "(untitled)"
    return f"{when} | {post.kind.value:19} | {post.record.course_id:>14} | {title[:60]}"


async def sync_courses(session: SyncSession, course_ids: list[str], args: argparse.Namespace) -> PostFeed:
    if args.clear_cache:
        for course_id in course_ids:
            session.clear_cache(course_id)

    feed = session.multi_course_feed(course_ids)
    if args.all_pages:
        feed.load_list(only_cache=True)
        await feed.refresh_list(fetch_all_pages=True)
        return feed

    pending = feed.load_list(bypass_cache=args.bypass_cache)
    if pending:
        await asyncio.gather(*pending)
    return feed


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)

    service = get_classroom_service()
    source = ClassroomListSource(service, page_size=page_size())
    session = SyncSession(DiskCache(resolve_cache_dir(args.cache_dir)), source)

    course_ids = [str(c).strip() for c in args.course if str(c).strip()]
    if not course_ids:
        archived = archived_course_ids()
        course_ids = [
            str(course["id"]) for course in get_all_courses(service)
            if str(course["id"]) not in archived
        ]
    if not course_ids:
        print("No courses to sync.")
        return

    logger.info("Syncing %d course(s)", len(course_ids))
    feed = asyncio.run(sync_courses(session, course_ids, args))

    posts = feed.posts(SHOW_CHOICES[args.show])
    if args.limit > 0:
        posts = posts[: args.limit]
    for post in posts:
        print(format_post(post))

    failed = [c for c in feed.controllers if c.last_error is not None]
    print(f"\n{len(feed.post_data)} post(s) cached; more pages available: {feed.has_next_page}")
    if failed:
        print(f"{len(failed)} stream(s) failed to refresh; showing cached data for those.")


if __name__ == "__main__":
    main()
