#!/usr/bin/env python3
"""
Seed a handful of demo courses for local development.

Run with:
    python scripts/seed_courses.py [creator-id]
"""

from __future__ import annotations

import asyncio
import sys

from sqlalchemy import select

from maguru.core.logging import setup_logging
from maguru.domain.services import CourseService
from maguru.infrastructure.db.models import Course, CourseStatus
from maguru.infrastructure.db.session import dispose_engine, get_session_factory

DEMO_COURSES = [
    {
        "title": "Dasar Pemrograman Python",
        "description": "Belajar sintaks dasar, struktur data, dan fungsi di Python.",
        "category": "programming",
        "status": CourseStatus.PUBLISHED,
    },
    {
        "title": "Desain UI untuk Pemula",
        "description": "Prinsip layout, tipografi, dan warna untuk antarmuka aplikasi.",
        "category": "design",
        "status": CourseStatus.PUBLISHED,
    },
    {
        "title": "Analisis Data dengan SQL",
        "description": "Query, agregasi, dan join untuk menjawab pertanyaan bisnis.",
        "category": "data",
        "status": CourseStatus.DRAFT,
    },
]


async def seed(creator_id: str) -> None:
    session_factory = get_session_factory()
    async with session_factory() as session:
        existing = set(
            (await session.execute(select(Course.title).where(Course.creator_id == creator_id)))
            .scalars()
            .all()
        )
        service = CourseService(session)
        for fields in DEMO_COURSES:
            if fields["title"] in existing:
                print(f"skip  {fields['title']}")
                continue
            result = await service.create_course(fields, creator_id)
            if not result.success:
                print(f"fail  {fields['title']}: {result.message}")
                continue
            print(f"added {fields['title']} ({result.unwrap().id})")
    await dispose_engine()


def main() -> None:
    setup_logging(json_logs=False)
    creator_id = sys.argv[1] if len(sys.argv) > 1 else "creator-dev"
    asyncio.run(seed(creator_id))


if __name__ == "__main__":
    main()
