"""Text embedding using sentence-transformers."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Abstract base class for text embedders."""

    dimensions: int

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Embed a text into a fixed-size vector.

        Returns:
            Mean-pooled, L2-normalized vector of ``dimensions`` floats
        """
        pass


class SentenceTransformerEmbedder(Embedder):
    """Local feature-extraction model, loaded on first use."""

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        dimensions: int = 384,
        device: Optional[str] = None,
    ) -> None:
        self.model_name = model_name
        self.dimensions = dimensions
        self.device = device
        self._model = None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def _get_model(self):
        """Lazy load embedding model."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model: %s", self.model_name)
            model = SentenceTransformer(self.model_name, device=self.device)
            actual = model.get_sentence_embedding_dimension()
            if actual is not None and actual != self.dimensions:
                raise ValueError(
                    f"Model {self.model_name} produces {actual}-dimensional vectors, "
                    f"configured dimensions is {self.dimensions}"
                )
            self._model = model
        return self._model

    def embed(self, text: str) -> List[float]:
        model = self._get_model()
        vector = model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        return np.asarray(vector, dtype=np.float32).tolist()
