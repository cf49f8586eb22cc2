import math
import re
from collections.abc import Sequence
from datetime import date

from resume_advisor.schemas.analysis import ExperienceEntry, SeniorityLevel

LEADERSHIP_KEYWORDS = ("lead", "senior", "manage", "mentor", "principal")

_MONTHS = {
    name: number
    for number, names in enumerate(
        (
            ("jan", "january"),
            ("feb", "february"),
            ("mar", "march"),
            ("apr", "april"),
            ("may",),
            ("jun", "june"),
            ("jul", "july"),
            ("aug", "august"),
            ("sep", "sept", "september"),
            ("oct", "october"),
            ("nov", "november"),
            ("dec", "december"),
        ),
        start=1,
    )
    for name in names
}
_CURRENT_MARKERS = {"present", "current", "currently", "now", "ongoing", "today"}

_YEAR_MONTH = re.compile(r"^(\d{4})(?:[-/.](\d{1,2}))?(?:[-/.]\d{1,2})?$")
_MONTH_YEAR = re.compile(r"^(\d{1,2})[-/.](\d{4})$")
_NAMED_MONTH_YEAR = re.compile(r"^([a-z]+)\.?,?\s+(\d{4})$")


def parse_month(value: str | None, today: date | None = None) -> tuple[int, int] | None:
    """Parse a résumé date into (year, month). Missing or "present" means today."""
    today = today or date.today()
    text = (value or "").strip().lower()
    if not text or text in _CURRENT_MARKERS:
        return today.year, today.month

    if match := _YEAR_MONTH.match(text):
        year, month = int(match.group(1)), int(match.group(2) or 1)
    elif match := _MONTH_YEAR.match(text):
        month, year = int(match.group(1)), int(match.group(2))
    elif (match := _NAMED_MONTH_YEAR.match(text)) and match.group(1) in _MONTHS:
        month, year = _MONTHS[match.group(1)], int(match.group(2))
    else:
        return None

    if not 1 <= month <= 12:
        return None
    return year, month


def months_between(start: tuple[int, int], end: tuple[int, int]) -> int:
    """Whole months from start to end, clamped at zero."""
    return max(0, (end[0] - start[0]) * 12 + (end[1] - start[1]))


def calculate_total_experience(
    experience: Sequence[ExperienceEntry],
    today: date | None = None,
) -> float:
    """Sum of all experience spans in years, rounded to one decimal.

    Entries whose start date cannot be parsed contribute nothing.
    """
    today = today or date.today()
    total_months = 0
    for entry in experience:
        if not entry.start_date.strip():
            continue
        start = parse_month(entry.start_date, today)
        end = parse_month(entry.end_date, today)
        if start is None or end is None:
            continue
        total_months += months_between(start, end)
    # Half-up rounding to one decimal
    return math.floor(total_months / 12 * 10 + 0.5) / 10


def has_leadership_signal(experience: Sequence[ExperienceEntry]) -> bool:
    for entry in experience:
        texts = [entry.position, *entry.responsibilities]
        if any(keyword in text.lower() for text in texts for keyword in LEADERSHIP_KEYWORDS):
            return True
    return False


def seniority_from_years(total_years: float, has_leadership: bool) -> SeniorityLevel:
    if total_years < 1:
        return SeniorityLevel.ENTRY
    if total_years < 3:
        return SeniorityLevel.JUNIOR
    if total_years < 5:
        return SeniorityLevel.MID
    if total_years < 8:
        return SeniorityLevel.SENIOR
    return SeniorityLevel.LEAD if has_leadership else SeniorityLevel.SENIOR
