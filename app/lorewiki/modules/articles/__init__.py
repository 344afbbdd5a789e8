"""
Articles module: versioned lore articles.

- Each article points at exactly one live revision
- Revisions are append-only snapshots (edits and restores add rows, never rewrite them)
- Only the owner or an administrator may edit, restore or delete
"""
