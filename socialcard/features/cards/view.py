"""
Social cards - View helpers

Turns remote metadata into template-ready values: truncated names, capped
lists with a "+N" overflow marker, sized avatar URLs and language bars.
All functions are pure.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from socialcard.features.cards.models import LanguageShare

T = TypeVar("T")

NAME_BUDGET = 15
ELLIPSIS = "..."

DEFAULT_LANGUAGE_COLOR = "#8b8b8b"
LANGUAGE_COLORS = {
    "C": "#555555",
    "C#": "#178600",
    "C++": "#f34b7d",
    "CSS": "#563d7c",
    "Dart": "#00B4AB",
    "Go": "#00ADD8",
    "HTML": "#e34c26",
    "Java": "#b07219",
    "JavaScript": "#f1e05a",
    "Kotlin": "#A97BFF",
    "MDX": "#fcb32c",
    "PHP": "#4F5D95",
    "Python": "#3572A5",
    "Ruby": "#701516",
    "Rust": "#dea584",
    "Shell": "#89e051",
    "Swift": "#F05138",
    "TypeScript": "#3178c6",
    "Vue": "#41b883",
}


def truncate_name(name: str, budget: int = NAME_BUDGET) -> str:
    """Shorten names over the budget to `budget` chars plus an ellipsis.

    Trailing dots are dropped from the shortened stem so the result never
    reads "foo....". Names within the budget come back untouched.
    """
    if len(name) <= budget:
        return name
    return f"{name[:budget].rstrip('.')}{ELLIPSIS}"


def truncate_text(text: str, budget: int) -> str:
    text = " ".join(text.split())
    if len(text) <= budget:
        return text
    return f"{text[:budget].rstrip()}{ELLIPSIS}"


def limit_with_overflow(items: Sequence[T], limit: int) -> Tuple[List[T], Optional[str]]:
    """First `limit` items, plus "+<rest>" when the list is longer than `limit`."""
    shown = list(items[:limit])
    remaining = len(items) - limit
    return shown, (f"+{remaining}" if remaining > 0 else None)


def sized_avatar(url: str, size: int) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}size={size}"


def github_avatar(login: str, size: int) -> str:
    return sized_avatar(f"https://github.com/{login}.png", size)


def language_bar(langs: Sequence[LanguageShare], width: int, limit: int = 5) -> List[Dict[str, Any]]:
    """Segments of a horizontal language bar, widest first.

    Languages past `limit` are folded into one "Other" segment.
    """
    ordered = sorted((lang for lang in langs if lang.size > 0), key=lambda lang: lang.size, reverse=True)
    total = sum(lang.size for lang in ordered)
    if not total:
        return []

    shown, _ = limit_with_overflow(ordered, limit)
    rest = total - sum(lang.size for lang in shown)
    entries = [(lang.name, lang.size, LANGUAGE_COLORS.get(lang.name, DEFAULT_LANGUAGE_COLOR)) for lang in shown]
    if rest:
        entries.append(("Other", rest, DEFAULT_LANGUAGE_COLOR))

    segments = []
    x = 0.0
    for name, size, color in entries:
        share = size / total
        segment_width = round(width * share, 2)
        segments.append({
            "name": name,
            "color": color,
            "percent": round(share * 100, 1),
            "x": round(x, 2),
            "width": segment_width,
        })
        x += segment_width
    return segments


def compact_count(value: int) -> str:
    """1234 -> "1.2k", 999_999 -> "1M"."""
    if value < 1000:
        return str(value)
    thousands = f"{value / 1000:.1f}"
    if float(thousands) < 1000:
        return thousands.rstrip("0").rstrip(".") + "k"
    return f"{value / 1_000_000:.1f}".rstrip("0").rstrip(".") + "M"
