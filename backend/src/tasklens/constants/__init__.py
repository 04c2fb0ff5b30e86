"""Configuration constants.

Re-exports all constants for convenient importing:
    from tasklens.constants import INITIAL_TOP_K, SNIPPET_MAX_LENGTH
"""

from tasklens.constants.search import *  # noqa: F403
from tasklens.constants.indexing import *  # noqa: F403
