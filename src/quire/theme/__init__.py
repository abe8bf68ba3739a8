"""Bundled default theme.

`static/` is copied into the site directory when a book sets
`use_default_theme`; `templates/` holds the article template used for
documents that opt in to template rendering.
"""

from pathlib import Path

from quire.constants import THEME_STATIC_DIR, THEME_TEMPLATES_DIR

THEME_ROOT = Path(__file__).parent
STATIC_DIR = THEME_ROOT / THEME_STATIC_DIR
TEMPLATES_DIR = THEME_ROOT / THEME_TEMPLATES_DIR
