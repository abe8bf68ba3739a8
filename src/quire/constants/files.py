"""File names and locations used by a book project.

The directory description file name and the cache directory are
configurable via the [paths] section of quire.ini; the values here are
what `quire init` writes and what the loader expects by default.
"""

# =============================================================================
# Project Layout
# =============================================================================
# A project has a book file at its root, a source directory with one
# description file per directory, and a site directory that is regenerated
# on every build.
#
# .
# ├── book.yaml
# ├── site/
# └── src/
#     ├── index.yaml
#     └── index.adoc

BOOK_FILE = "book.yaml"
INDEX_FILE = "index.yaml"
DEFAULT_SRC_DIR = "src"
DEFAULT_SITE_DIR = "site"

# =============================================================================
# Bundled Theme
# =============================================================================
# Package-relative directories of the default theme. Static assets are copied
# into the site directory when `use_default_theme` is set; templates are used
# for documents that opt in with the template attribute.

THEME_STATIC_DIR = "static"
THEME_TEMPLATES_DIR = "templates"
DEFAULT_ARTICLE_TEMPLATE = "article.html.j2"
