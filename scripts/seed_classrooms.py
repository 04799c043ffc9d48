"""
Seed Classrooms

Loads classroom reference data. Existing classrooms are updated in place,
so the script can be re-run safely.

Usage:
    python scripts/seed_classrooms.py                # default primary classes
    python scripts/seed_classrooms.py classrooms.json

The JSON file is a list of objects with year, grade, section and optional
teacherName and studentCount.
"""

import asyncio
import json
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alumni.core.database import async_session_maker, engine
from alumni.modules.classrooms.models import Classroom
from alumni.modules.shared import utcnow

GRADE_NAMES = {"P": "Primary", "S": "Secondary"}

# Primary 1-6, sections A-D, for the 1985 cohort through 1990
DEFAULT_CLASSROOMS = [
    {"year": year, "grade": f"P{level}", "section": section}
    for year in range(1985, 1991)
    for level in range(1, 7)
    for section in "ABCD"
]


def build_classroom(entry: dict) -> Classroom:
    year = int(entry["year"])
    grade = str(entry["grade"])
    section = str(entry["section"])
    grade_name = GRADE_NAMES.get(grade[:1], grade[:1])

    return Classroom(
        id=f"{year}-{grade}{section}",
        year=year,
        grade=grade,
        section=section,
        display_name=f"{grade_name} {grade[1:]}{section} ({year})",
        teacher_name=entry.get("teacherName"),
        student_count=entry.get("studentCount"),
        created_at=utcnow(),
    )


async def seed_classrooms(entries: list[dict]) -> None:
    async with async_session_maker() as db:
        for entry in entries:
            await db.merge(build_classroom(entry))
        await db.commit()

    print(f"Seeded {len(entries)} classrooms")
    await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) > 1:
        entries = json.loads(Path(sys.argv[1]).read_text())
    else:
        entries = DEFAULT_CLASSROOMS
    asyncio.run(seed_classrooms(entries))
