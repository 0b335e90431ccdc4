import re
import unicodedata

_LINE_BREAKS = re.compile(r"[\r\n]+")


def char_width(ch: str) -> int:
    return 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1


def display_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


def strimwidth(text: str, width: int, marker: str = "") -> str:
    """Trim `text` to `width` display columns, ending with `marker` when cut.

    Wide and fullwidth characters take two columns.
    """
    if display_width(text) <= width:
        return text

    budget = width - display_width(marker)
    out = []
    used = 0
    for ch in text:
        w = char_width(ch)
        if used + w > budget:
            break
        out.append(ch)
        used += w
    return "".join(out) + marker


def sanitize_header(value: str) -> str:
    """Strip line breaks so a value cannot inject extra mail headers."""
    return _LINE_BREAKS.sub("", value or "")
