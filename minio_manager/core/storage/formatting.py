"""Human-readable formatting helpers."""

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_file_size(size: int) -> str:
    """
    Format a byte count with binary prefixes: 1536 -> "1.5 KB".

    Values are rounded to two decimals and trailing zeros are dropped.
    Anything past TB is still reported in TB.
    """
    if size < 0:
        raise ValueError("File size cannot be negative")
    if size == 0:
        return "0 B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    formatted = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{formatted} {SIZE_UNITS[unit]}"
