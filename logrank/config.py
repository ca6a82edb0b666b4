from typing import Optional

from logrank.errors import ConfigurationError

DEFAULT_RANDOM_JUMP = 0.15
DEFAULT_TOP_K = 100


class RankingConfig:
    def __init__(
        self,
        node_count: int,
        iterations: int,
        random_jump: float = DEFAULT_RANDOM_JUMP,
        top_k: int = DEFAULT_TOP_K,
        num_partitions: Optional[int] = None,
    ):
        self.node_count = node_count
        self.iterations = iterations
        self.random_jump = random_jump
        self.top_k = top_k
        self.num_partitions = num_partitions
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for any parameter the engine cannot run with."""
        if self.node_count is None or self.node_count <= 0:
            raise ConfigurationError(f"node count must be positive, got {self.node_count}")
        if self.iterations is None or self.iterations < 0:
            raise ConfigurationError(f"iteration count must be non-negative, got {self.iterations}")
        if not 0.0 <= self.random_jump <= 1.0:
            raise ConfigurationError(f"random jump probability must lie in [0, 1], got {self.random_jump}")
        if self.top_k < 0:
            raise ConfigurationError(f"top-k must be non-negative, got {self.top_k}")
        if self.num_partitions is not None and self.num_partitions < 1:
            raise ConfigurationError(f"number of partitions must be at least 1, got {self.num_partitions}")

    def __repr__(self) -> str:
        return (f"RankingConfig(node_count={self.node_count}, iterations={self.iterations}, "
                f"random_jump={self.random_jump}, top_k={self.top_k}, num_partitions={self.num_partitions})")
