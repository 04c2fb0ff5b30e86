"""Semantic search configuration.

These settings control the cross-entity search over tasks and their chat
messages. Both entity types are queried independently in vector space, then
merged into a single ranked list of tasks.
"""

# =============================================================================
# Candidate Fan-out
# =============================================================================
# Each of the two nearest-neighbour lookups (tasks, messages) fetches this many
# candidates. It must be larger than the final result limit so that tasks only
# reachable through their messages still have room to surface.

INITIAL_TOP_K = 20

# =============================================================================
# Result Limits
# =============================================================================
# Number of tasks returned to the caller, and how many matched messages are
# attached to each task as supporting evidence.

FINAL_RESULTS_LIMIT = 5
MAX_RELEVANT_MESSAGES = 3

# =============================================================================
# Query Validation
# =============================================================================
# Queries shorter than this (after stripping whitespace) are rejected before
# any embedding or storage work happens.

MIN_QUERY_LENGTH = 2

# =============================================================================
# Snippets
# =============================================================================
# Context snippets show a window around the first occurrence of the query.
# The window keeps a quarter of the max length before the match and three
# quarters after it.

SNIPPET_MAX_LENGTH = 150
SNIPPET_ELLIPSIS = "..."

# =============================================================================
# Match Sources
# =============================================================================
# Label describing which evidence produced a task's best distance.

MATCH_SOURCE_TASK = "task"
MATCH_SOURCE_MESSAGE = "message"
MATCH_SOURCE_TASK_AND_MESSAGE = "task_and_message"
