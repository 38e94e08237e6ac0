import re
import string
from dataclasses import dataclass
from typing import Iterable, List, Sequence

SEATS_PER_ROW = 10
ROW_LETTERS = string.ascii_uppercase
SEAT_LABEL_PATTERN = re.compile(r"^([A-Z])(\d+)$")


class InvalidSeatLabel(ValueError):
    pass


class SeatOutOfRange(ValueError):
    pass


@dataclass(frozen=True)
class SeatInfo:
    number: int
    label: str
    is_available: bool = True


@dataclass(frozen=True)
class SeatSelection:
    numbers: List[int]
    labels: List[str]


def label_for_number(number: int) -> str:
    """Row-major: 1..10 → A1..A10, 11..20 → B1..B10, and so on."""
    if number < 1 or number > SEATS_PER_ROW * len(ROW_LETTERS):
        raise SeatOutOfRange(f"Seat number {number} is outside the seat grid")
    row_index = (number - 1) // SEATS_PER_ROW
    seat_in_row = (number - 1) % SEATS_PER_ROW + 1
    return f"{ROW_LETTERS[row_index]}{seat_in_row}"


def number_for_label(label: str) -> int:
    match = SEAT_LABEL_PATTERN.match(label or "")
    if not match:
        raise InvalidSeatLabel(f"Invalid seat label: {label}")
    row_letter, seat_in_row = match.groups()
    return (ord(row_letter) - ord("A")) * SEATS_PER_ROW + int(seat_in_row)


def validate_selection(labels: Sequence[str], total_seats: int) -> SeatSelection:
    """
    Resolve seat labels to numbers, checking each one against the grid.

    Raises InvalidSeatLabel for malformed labels (including a seat index
    past the row width, which would alias another row), SeatOutOfRange
    when a seat falls outside [1, total_seats], and InvalidSeatLabel for
    a seat picked twice.
    """
    numbers: List[int] = []
    resolved: List[str] = []
    for label in labels:
        number = number_for_label(label)
        if _label_or_blank(number) != label:
            raise InvalidSeatLabel(f"Invalid seat label: {label}")
        if number < 1 or number > total_seats:
            raise SeatOutOfRange(f"Seat {label} is out of range (1-{total_seats})")
        if number in numbers:
            raise InvalidSeatLabel(f"Seat {label} was selected more than once")
        numbers.append(number)
        resolved.append(label)
    return SeatSelection(numbers=numbers, labels=resolved)


def _label_or_blank(number: int) -> str:
    try:
        return label_for_number(number)
    except SeatOutOfRange:
        return ""


def generate_all(total_seats: int, taken: Iterable[int] = ()) -> List[SeatInfo]:
    taken_set = set(taken)
    return [
        SeatInfo(number=n, label=label_for_number(n), is_available=n not in taken_set)
        for n in range(1, total_seats + 1)
    ]
