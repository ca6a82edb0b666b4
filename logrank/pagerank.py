import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

from pyspark import RDD

from logrank.config import DEFAULT_RANDOM_JUMP, RankingConfig
from logrank.graph import node_domain
from logrank.logspace import NEG_INF, linear_add, log_add, safe_log, total_mass

logger = logging.getLogger(__name__)

Contribution = Tuple[int, float]


def is_dangling(neighbors) -> bool:
    # A node missing from the adjacency store and a node with no neighbors are the same case.
    return neighbors is None or not neighbors


def split_mass(record: Tuple[int, Tuple[float, Optional[Tuple[int, ...]]]]) -> Tuple[List[Contribution], float]:
    """
    Distribute one node's log mass along its out-edges.

    Returns the contributions for its neighbors and the linear mass it loses
    to the dangling pool (0.0 for any node that has neighbors).
    """
    node_id, (log_mass, neighbors) = record

    if is_dangling(neighbors):
        return [], math.exp(log_mass)

    degree = len(neighbors)
    if degree == 0:
        logger.warning("Node %d has zero out-degree but was not flagged dangling; treating it as dangling", node_id)
        return [], math.exp(log_mass)

    # ln(x) - ln(y) = ln(x / y)
    share = log_mass - math.log(degree)
    return [(neighbor, share) for neighbor in neighbors], 0.0


def finalize_mass(aggregate: float, jump_term: float, follow_term: float, missing_term: float) -> float:
    """(p / N) + (1 - p) * (aggregate + m / N), evaluated in log space."""
    return log_add(jump_term, follow_term + log_add(aggregate, missing_term))


def initial_ranks(nodes: RDD, node_count: int) -> RDD:
    weight = -math.log(node_count)
    return nodes.mapValues(lambda _: weight).cache()


def run_iteration(
    adjacency: RDD,
    ranks: RDD,
    nodes: RDD,
    node_count: int,
    random_jump: float = DEFAULT_RANDOM_JUMP,
    num_partitions: Optional[int] = None
) -> Tuple[RDD, float]:
    """
    Run one PageRank pass and return the next rank table with the missing mass it redistributed.

    `nodes` is the (node_id, None) domain; every node in it gets a rank in the
    returned table, whether or not any edge points at it.
    """
    if num_partitions is None:
        num_partitions = ranks.getNumPartitions()

    split = ranks.leftOuterJoin(adjacency, numPartitions=num_partitions).map(split_mass).cache()

    # fold() is an action, so every partition has reported its dangling mass
    # before the finalize step below is even built.
    missing_mass = split.map(lambda x: x[1]).fold(0.0, linear_add)

    aggregated = split.flatMap(lambda x: x[0]).reduceByKey(log_add, numPartitions=num_partitions)

    log_n = math.log(node_count)
    jump_term = safe_log(random_jump) - log_n
    follow_term = safe_log(1.0 - random_jump)
    missing_term = safe_log(missing_mass) - log_n

    new_ranks = nodes.leftOuterJoin(aggregated, numPartitions=num_partitions).mapValues(
        lambda x: finalize_mass(x[1] if x[1] is not None else NEG_INF, jump_term, follow_term, missing_term)
    ).cache()

    new_ranks.count()
    split.unpersist()
    return new_ranks, missing_mass


def top_k(ranks: RDD, k: int) -> List[Tuple[int, float]]:
    if k <= 0:
        return []
    return ranks.takeOrdered(k, key=lambda x: (-x[1], x[0]))


def rank_pages(
    adjacency: RDD,
    node_count: int,
    iterations: int,
    K: int,
    random_jump: float = DEFAULT_RANDOM_JUMP,
    num_partitions: Optional[int] = None,
    track_timing: bool = False
) -> Tuple[List[Tuple[int, float]], RDD, Dict[str, Any]]:
    config = RankingConfig(node_count, iterations, random_jump, K, num_partitions)

    sc = adjacency.context
    num_partitions = config.num_partitions
    if num_partitions is None:
        num_partitions = max(sc.defaultParallelism * 2, 8)

    nodes = node_domain(adjacency, num_partitions)
    domain_size = nodes.count()
    if domain_size != config.node_count:
        logger.warning("Graph holds %d distinct nodes but node count is %d; ranks will not sum to 1",
                       domain_size, config.node_count)

    ranks = initial_ranks(nodes, config.node_count)

    per_iter_times: List[float] = []
    missing_masses: List[float] = []
    total_start = time.perf_counter() if track_timing else None

    for iteration in range(config.iterations):
        iter_start = time.perf_counter() if track_timing else None

        new_ranks, missing = run_iteration(adjacency, ranks, nodes, config.node_count, config.random_jump, num_partitions)
        ranks.unpersist()
        ranks = new_ranks
        missing_masses.append(missing)
        logger.info("Iteration %d/%d done, missing mass %.6f", iteration + 1, config.iterations, missing)

        if track_timing and iter_start is not None:
            per_iter_times.append(time.perf_counter() - iter_start)

    total_time = (time.perf_counter() - total_start) if track_timing and total_start is not None else None

    top = top_k(ranks, config.top_k)

    stats = {
        "iterations": config.iterations,
        "missing_mass": missing_masses,
        "total_time": total_time,
        "per_iter_times": per_iter_times if track_timing else None,
        "num_partitions": num_partitions,
        "node_domain_size": domain_size,
    }

    return top, ranks, stats


def validate(ranks: RDD, node_count: int, epsilon: float) -> Tuple[bool, Dict[str, Any]]:
    details = {}

    # Every rank is a real, non-zero mass
    degenerate_count = ranks.filter(lambda x: math.isnan(x[1]) or x[1] == NEG_INF).count()
    details["degenerate_ranks_count"] = degenerate_count
    if degenerate_count > 0:
        details["valid"] = False
        details["reason"] = "Found ranks with zero or undefined mass"
        return False, details

    # Mass sums to 1 in linear space
    rank_sum = ranks.values().mapPartitions(lambda it: [total_mass(it)]).fold(0.0, linear_add)
    details["rank_sum"] = rank_sum
    if abs(rank_sum - 1.0) > epsilon:
        details["valid"] = False
        details["reason"] = f"Rank sum {rank_sum} not close to 1.0 (epsilon={epsilon})"
        return False, details

    num_ranks = ranks.count()
    details["num_nodes"] = node_count
    details["num_ranks"] = num_ranks
    if num_ranks != node_count:
        details["valid"] = False
        details["reason"] = f"Mismatch: {node_count} nodes but {num_ranks} ranks"
        return False, details

    details["valid"] = True
    return True, details
