"""
String sanitizers for metric names and label values.
"""

_NAME_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (" ", "_"),
    ("(", ""),
    (")", ""),
    ("/", ""),
    ("*", ""),
    (":", ""),
    ("%", "percent"),
)


def clean_name(value: str) -> str:
    """
    Turn an arbitrary text value into a safe metric-name fragment.

    Replacements are applied in order, then the result is lowercased:
    spaces become underscores, ``( ) / * :`` are removed and ``%`` becomes
    the word ``percent``.

    Example:
        >>> clean_name("Disk (C:) % Used")
        'disk_c_percent_used'
    """
    for old, new in _NAME_REPLACEMENTS:
        value = value.replace(old, new)
    return value.lower()


def sanitize_label_value(value: str) -> str:
    """Replace every space in a label value with an underscore."""
    return value.replace(" ", "_")
