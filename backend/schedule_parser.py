"""Turn the hand-edited schedule sheets into ScheduleEntry records.

Sheet layout (one sheet per location):

    row 0:  <label>  Sunday      Monday      ...  Saturday
    row 1:           2025-01-05  2025-01-06  ...  2025-01-11
    row 2+: <shift>  name cells, one column per day

Column A opens a shift block ("*", "11:00" or "15:30"). Rows with an empty
column A belong to the block above, so a block can span several rows.
"""
import logging
import re
from collections import defaultdict
from typing import NamedTuple

from schemas import Location, NoteType, ScheduleEntry, ShiftType, TimeNote

logger = logging.getLogger(__name__)

DAY_COLUMNS = range(1, 8)  # B..H, Sunday..Saturday

# Ordered: the first pattern that matches wins
_FORMAL_NOTE = re.compile(r"^(.+?)\((until|from)\s+(\d{1,2}):(\d{2})\)$")
_SHORT_UNTIL_NOTE = re.compile(r"^(.+?)\(~(\d{1,2}):(\d{2})\)$")
_SHORT_FROM_NOTE = re.compile(r"^(.+?)\((\d{1,2}):(\d{2})~\)$")


class ParsedCell(NamedTuple):
    name: str
    note: TimeNote | None = None


class RowState(NamedTuple):
    shift: ShiftType | None
    skip: bool


def normalize_name(name: str) -> str:
    """Capitalize the first letter and lowercase the rest ("jOHN" -> "John")."""
    trimmed = name.strip()
    if not trimmed:
        return trimmed
    return trimmed[0].upper() + trimmed[1:].lower()


def normalize_time(hour: int, minute: int) -> str:
    """Format a sheet time as 24-hour HH:MM.

    The shop opens at 11:00, so 1-10 can only mean the afternoon or evening
    and gets 12 hours added. Everything else is kept as written.
    """
    if 1 <= hour <= 10:
        hour += 12
    return f"{hour:02d}:{minute:02d}"


def _note(note_type: NoteType, hour: str, minute: str) -> TimeNote:
    return TimeNote(type=note_type, time=normalize_time(int(hour), int(minute)))


def parse_time_note(value: str) -> ParsedCell:
    """Split a name cell into the name and its optional time note.

    Supported notations:
        Jane(until 17:00), Jane(from 17:00)  - formal
        Ryan(~4:00)                          - until, short
        Minji(5:30~)                         - from, short

    Anything else with a parenthesis is kept verbatim as the name.

    >>> parse_time_note("Ryan(~4:00)")
    ParsedCell(name='Ryan', note=TimeNote(type=<NoteType.UNTIL: 'until'>, time='16:00'))
    """
    trimmed = value.strip()
    if "(" not in trimmed:
        return ParsedCell(trimmed)

    match = _FORMAL_NOTE.match(trimmed)
    if match:
        name, keyword, hour, minute = match.groups()
        return ParsedCell(name.strip(), _note(NoteType(keyword), hour, minute))

    match = _SHORT_UNTIL_NOTE.match(trimmed)
    if match:
        name, hour, minute = match.groups()
        return ParsedCell(name.strip(), _note(NoteType.UNTIL, hour, minute))

    match = _SHORT_FROM_NOTE.match(trimmed)
    if match:
        name, hour, minute = match.groups()
        return ParsedCell(name.strip(), _note(NoteType.FROM, hour, minute))

    return ParsedCell(trimmed)


def get_shift_type(value: str) -> ShiftType | None:
    """Return the shift a column A label opens, or None if it is not one."""
    trimmed = value.strip()
    if not trimmed:
        return None
    try:
        return ShiftType(trimmed)
    except ValueError:
        return None


def parse_employees(rows: list[list[str]]) -> list[str]:
    """Read employee names from column A, skipping the header row."""
    names = []
    for row in rows[1:]:
        name = row[0].strip() if row else ""
        if name:
            names.append(name)
    return names


def next_row_state(current_shift: ShiftType | None, label: str) -> RowState:
    """Advance the shift block state by one data row.

    A valid label opens a new block. An unknown label quarantines its own
    row but keeps the open block for the rows that follow. A blank label
    continues the open block, if any.
    """
    label = label.strip()
    if label:
        shift = get_shift_type(label)
        if shift is None:
            return RowState(current_shift, skip=True)
        return RowState(shift, skip=False)
    return RowState(current_shift, skip=current_shift is None)


def _cell(row: list[str], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def _row_entries(
    row: list[str],
    shift: ShiftType,
    location: Location,
    day_row: list[str],
    date_row: list[str],
) -> list[ScheduleEntry]:
    entries = []
    for col in DAY_COLUMNS:
        value = _cell(row, col)
        if not value:
            continue

        raw_name, note = parse_time_note(value)
        name = normalize_name(raw_name)
        if not name:
            continue

        entries.append(
            ScheduleEntry(
                name=name,
                date=_cell(date_row, col),
                day_of_week=_cell(day_row, col),
                shift=shift,
                location=location,
                note=note,
            )
        )
    return entries


def parse_schedule_sheet(rows: list[list[str]], location: Location) -> list[ScheduleEntry]:
    """Parse one location's sheet grid into entries, in sheet order."""
    day_row = rows[0] if len(rows) > 0 else []
    date_row = rows[1] if len(rows) > 1 else []

    entries: list[ScheduleEntry] = []
    current_shift: ShiftType | None = None
    for row in rows[2:]:
        current_shift, skip = next_row_state(current_shift, _cell(row, 0))
        if skip:
            continue
        entries.extend(_row_entries(row, current_shift, location, day_row, date_row))
    return entries


def consolidate_to_all_day(entries: list[ScheduleEntry]) -> list[ScheduleEntry]:
    """Merge a person's noteless 11:00 and 15:30 shifts on one day into "*".

    Entries with a time note are partial shifts and are never merged. If the
    person already has an all-day entry that day, any half-day entries next
    to it are dropped.
    """
    groups: dict[tuple[str, Location, str], list[ScheduleEntry]] = defaultdict(list)
    for entry in entries:
        groups[(entry.date, entry.location, entry.name)].append(entry)

    result: list[ScheduleEntry] = []
    for (date, location, name), group in groups.items():
        all_day = next((e for e in group if e.shift == ShiftType.ALL_DAY), None)
        if all_day is not None:
            if len(group) > 1:
                logger.warning(
                    f"Dropping {len(group) - 1} partial shift(s) for {name} on {date} "
                    f"at {location.value}: already scheduled all day"
                )
            result.append(all_day)
            continue

        mornings = [e for e in group if e.shift == ShiftType.MORNING]
        afternoons = [e for e in group if e.shift == ShiftType.AFTERNOON]
        if (
            len(mornings) == 1
            and len(afternoons) == 1
            and mornings[0].note is None
            and afternoons[0].note is None
        ):
            morning = mornings[0]
            result.append(
                ScheduleEntry(
                    name=morning.name,
                    date=morning.date,
                    day_of_week=morning.day_of_week,
                    shift=ShiftType.ALL_DAY,
                    location=morning.location,
                )
            )
        else:
            result.extend(group)

    return result
