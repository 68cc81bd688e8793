import logging
from functools import cached_property

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Query embedder backed by a local sentence-transformers model."""

    def __init__(
        self,
        model_name: str = "intfloat/multilingual-e5-small",
        normalize: bool = True,
        device: str | None = None,
    ):
        self._model_name = model_name
        self._normalize = normalize
        self._device = device

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name, device=self._device)

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def warmup(self) -> None:
        self.encode("query: warmup")
        logger.info(f"Embedding model warmed up (dim={self.dimension})")

    def encode(self, texts: str | list[str]) -> np.ndarray:
        return self.model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=self._normalize,
        )
