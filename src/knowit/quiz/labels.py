"""Display labels and colours for upstream category tokens."""

from __future__ import annotations

from typing import NamedTuple

__all__ = ["CategoryStyle", "category_style"]


class CategoryStyle(NamedTuple):
    label: str
    style: str


_STYLES: tuple[tuple[str, CategoryStyle], ...] = (
    ("geographie", CategoryStyle("Géographie", "bold white on blue")),
    ("tv_cinema", CategoryStyle("TV & Cinéma", "bold white on magenta")),
    ("histoire", CategoryStyle("Histoire", "bold black on yellow")),
    ("art_litterature", CategoryStyle("Arts & Littérature", "bold white on purple")),
    ("science", CategoryStyle("Sciences", "bold white on green")),
    ("sport", CategoryStyle("Sports", "bold white on dark_orange")),
    ("musique", CategoryStyle("Musique", "bold white on slate_blue1")),
    ("jeux_videos", CategoryStyle("Jeux Vidéo", "bold white on dark_cyan")),
    ("actu_politique", CategoryStyle("Actu & Politique", "bold white on red")),
    ("gastronomie", CategoryStyle("Gastronomie", "bold white on dark_goldenrod")),
)

_FALLBACK = CategoryStyle("Culture G", "bold white on grey37")


def category_style(category: str) -> CategoryStyle:
    """Match ``category`` by substring, falling back to general culture."""

    lowered = (category or "").lower()
    for token, style in _STYLES:
        if token in lowered:
            return style
    return _FALLBACK
