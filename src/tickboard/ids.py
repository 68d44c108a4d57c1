"""Ticket and user ID helpers.

Ticket ids are decimal strings ("1", "2", ...), user ids carry a "u" prefix.
Ids compare by numeric value so that "10" sorts after "9".
"""


def normalize_id(s: str) -> str:
    """Strip leading zeros from a numeric ID, preserving at least one digit.

    "001" → "1", "0" → "0", "u01" → "u01"
    """
    if not s.isdigit():
        return s
    return s.lstrip("0") or "0"


def id_key(s: str) -> tuple[int, str]:
    """Sort key placing numeric ids in numeric order, before any other id."""
    if s.isdigit():
        return (0, s.lstrip("0").rjust(32, "0"))
    return (1, s)


def next_id(existing: list[str], prefix: str = "") -> str:
    """Generate the next ID after the highest existing one sharing prefix.

    IDs without the prefix, or whose remainder is not numeric, are ignored.
    next_id([]) → "1", next_id(["1", "9"]) → "10", next_id(["u2"], "u") → "u3"
    """
    numbers = [int(i[len(prefix) :]) for i in existing if i.startswith(prefix) and i[len(prefix) :].isdigit()]
    return f"{prefix}{max(numbers, default=0) + 1}"
