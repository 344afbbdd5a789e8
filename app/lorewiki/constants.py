"""
Central constants for the lore wiki.
"""
from __future__ import annotations

# Closed set of article categories; anything else normalizes to DEFAULT_CATEGORY.
CATEGORIES = frozenset({"world", "character", "item", "system"})
DEFAULT_CATEGORY = "world"

# Sort keys accepted by the article listing.
SORT_TITLE = "title"
SORT_UPDATED = "updated"

INITIAL_REVISION_SUMMARY = "Initial creation"
RESTORE_SUMMARY_TEMPLATE = "Restore from revision {revision_id}"

DEFAULT_SUMMARY_MAX_LENGTH = 300
# Column widths: articles.title String(255), article_revisions.summary String(512).
TITLE_MAX_LENGTH = 255
SUMMARY_COLUMN_LENGTH = 512

MIN_PASSWORD_LENGTH = 8
