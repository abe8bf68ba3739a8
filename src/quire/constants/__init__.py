"""Configuration constants.

Re-exports all constants for convenient importing:
    from quire.constants import TEMPLATE_ATTRIBUTE, UNTITLED
"""

from quire.constants.build import *  # noqa: F403
from quire.constants.files import *  # noqa: F403
