"""Rendering constants.

These control how documents are converted and how the sidebar is labelled.
"""

# =============================================================================
# Option Placeholders
# =============================================================================
# Converter options in book.yaml may contain these tokens. They are replaced
# textually before the converter is invoked.

PLACEHOLDER_SRC_DIR = "{src_dir}"
PLACEHOLDER_DST_DIR = "{dst_dir}"
PLACEHOLDER_BASE_URL = "{base_url}"

# =============================================================================
# Document Directives
# =============================================================================
# A document opts in to template rendering with a header attribute naming a
# template relative to the source directory:
#
#   = Article title
#   :template: theme/article.html.j2

TEMPLATE_ATTRIBUTE = "template"
EMBEDDED_FLAG = "--embedded"

# =============================================================================
# Sidebar
# =============================================================================
# Title shown for a document whose description entry has no name and whose
# first line is not a `= Title` heading.

UNTITLED = "<untitled>"
