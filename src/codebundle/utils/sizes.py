# src/codebundle/utils/sizes.py

_UNITS = ["B", "KB", "MB", "GB"]


def format_file_size(num_bytes: int) -> str:
    """Human readable size, e.g. 0 B, 512 B, 1.5 KB, 5 MB."""
    value = float(max(num_bytes, 0))
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    value = round(value, 1)
    # 1024 renders as "1 KB", not "1.0 KB"
    text = str(int(value)) if value.is_integer() else str(value)
    return f"{text} {_UNITS[unit]}"
