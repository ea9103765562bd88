from .view import (
    ReviewApp,
    answer_text,
    count_label,
    format_saved_at,
    render_review_table,
)

__all__ = [
    "ReviewApp",
    "answer_text",
    "count_label",
    "format_saved_at",
    "render_review_table",
]
