from datetime import datetime


def format_date(value) -> str:
    """
    Long US-style timestamp used in complaint listings,
    e.g. "October 5, 2026, 03:04:05 PM".
    """
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return f"{value:%B} {value.day}, {value.year}, {value:%I:%M:%S %p}"
