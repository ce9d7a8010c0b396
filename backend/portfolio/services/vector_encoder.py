"""Vector encoder — hashed bag-of-words embeddings and cosine similarity.

Tokens from tags, tech stack, title and description are hashed into a fixed
number of buckets. Collisions are accepted; the vector is only used to rank
projects against each other.
"""

from typing import Iterable, Protocol, Sequence

import numpy as np

from portfolio.errors import DimensionMismatch

EMBEDDING_DIMENSION = 384


class ProjectAttributes(Protocol):
    tags: Sequence[str] | None
    tech_stack: Sequence[str] | None
    title: str | None
    description: str | None


def stable_hash(token: str) -> int:
    """31-multiplier string hash folded into a signed 32-bit int, returned as its magnitude."""
    h = 0
    for ch in token:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def tokenize(attrs: ProjectAttributes) -> list[str]:
    tokens: list[str] = []
    tokens.extend(tag.lower() for tag in (attrs.tags or []))
    tokens.extend(tech.lower() for tech in (attrs.tech_stack or []))
    tokens.extend((attrs.title or "").lower().split())
    tokens.extend((attrs.description or "").lower().split())
    return [t for t in tokens if t]


class VectorEncoder:
    def __init__(self, dimension: int = EMBEDDING_DIMENSION):
        self.dimension = dimension

    def bucket(self, token: str) -> int:
        return stable_hash(token) % self.dimension

    def encode(self, attrs: ProjectAttributes) -> list[float]:
        """Encode project attributes into an L2-normalized vector.

        Deterministic for identical attributes. A project with no tokens gets
        the zero vector.
        """
        vector = np.zeros(self.dimension, dtype=np.float64)
        for token in tokenize(attrs):
            vector[self.bucket(token)] += 1.0

        magnitude = np.linalg.norm(vector)
        if magnitude > 0:
            vector = vector / magnitude
        return vector.tolist()

    def similarity(self, a: Iterable[float], b: Iterable[float]) -> float:
        """Cosine similarity in [-1, 1]. Zero vectors score 0."""
        va = np.asarray(list(a), dtype=np.float64)
        vb = np.asarray(list(b), dtype=np.float64)
        if va.shape != vb.shape:
            raise DimensionMismatch(f"Vector dimensions differ: {va.shape[0]} != {vb.shape[0]}")

        magnitude = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
        if magnitude == 0:
            return 0.0
        score = float(np.dot(va, vb)) / magnitude
        return max(-1.0, min(1.0, score))
