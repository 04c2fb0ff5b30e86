"""Embedding backfill and vector index configuration.

Tasks and messages are stored in SQLite and embedded lazily. The backfill
job embeds every record that has not been embedded yet and writes the
vectors into two ChromaDB collections.
"""

# =============================================================================
# Batching
# =============================================================================
# Records are loaded and embedded in batches to bound memory use.

EMBEDDING_BATCH_SIZE = 50

# =============================================================================
# Collections
# =============================================================================
# Cosine distance matches the normalized sentence embeddings produced by the
# bundled MiniLM model: 0.0 = identical, 2.0 = opposite.

TASKS_COLLECTION = "tasklens_tasks"
MESSAGES_COLLECTION = "tasklens_messages"
DISTANCE_SPACE = "cosine"
