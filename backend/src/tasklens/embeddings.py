"""Text-to-vector embedding using ChromaDB's bundled sentence model."""

import logging
import threading
from collections.abc import Sequence

from chromadb.api.types import EmbeddingFunction
from chromadb.utils.embedding_functions import DefaultEmbeddingFunction

from tasklens.search.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)


class Embedder:
    """Maps text to normalized sentence embeddings.

    The ONNX model is loaded on first use and kept for the lifetime of the
    instance; construct one per process and share it.
    """

    def __init__(self, model: str = "all-MiniLM-L6-v2", function: EmbeddingFunction | None = None):
        """Initialize embedder.

        Args:
            model: Model name, recorded for logging.
            function: Embedding function to use instead of the bundled model.
        """
        self.model = model
        self._function = function
        self._lock = threading.Lock()

    def _get_function(self) -> EmbeddingFunction:
        with self._lock:
            if self._function is None:
                logger.info(f"Loading embedding model {self.model}")
                try:
                    self._function = DefaultEmbeddingFunction()
                except Exception as e:
                    raise EmbeddingUnavailable(f"Embedding model unavailable: {e}") from e
                if self._function is None:
                    raise EmbeddingUnavailable("Embedding model dependencies are not installed")
                logger.info(f"Embedding model {self.model} loaded")
            return self._function

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed a batch of texts.

        Raises:
            EmbeddingUnavailable: If any text is blank or the model fails.
        """
        if not texts:
            return []
        if any(not text or not text.strip() for text in texts):
            raise EmbeddingUnavailable("Cannot embed empty text")

        function = self._get_function()
        try:
            vectors = function(list(texts))
        except Exception as e:
            raise EmbeddingUnavailable(f"Embedding failed: {e}") from e

        result = [[float(x) for x in vector] for vector in vectors]
        if len(result) != len(texts) or any(len(vector) == 0 for vector in result):
            raise EmbeddingUnavailable("Embedding model returned no vector")
        return result

    def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingUnavailable: If the text is blank or the model fails.
        """
        return self.embed_many([text])[0]
