import argparse
import logging
import math
import sys
from typing import List, Optional, Tuple

from pyspark.sql import SparkSession

from logrank.config import DEFAULT_RANDOM_JUMP, DEFAULT_TOP_K, RankingConfig
from logrank.errors import ConfigurationError, LogRankError
from logrank.graph import adjacency_from_records, generate_synthetic_graph, load_adjacency, save_adjacency_list
from logrank.pagerank import rank_pages, validate

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Log-space PageRank")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", type=str, help="Path to adjacency-list file")
    src.add_argument("--generate", action="store_true", help="Generate synthetic graph")
    parser.add_argument("--num-nodes", type=int, help="Number of nodes in the graph (size of the generated graph with --generate)")
    parser.add_argument("--num-edges", type=int, default=4000)
    parser.add_argument("--seed", type=int, default=42, help="Random seed for generation")
    parser.add_argument("--output-graph", type=str, help="Optional: save generated graph as an adjacency list")

    # Output
    parser.add_argument("--output", type=str, help="Write top-k ranks as TSV (nodeId<TAB>logMass)")

    # Algorithm params
    parser.add_argument("--iterations", type=int, required=True)
    parser.add_argument("--random-jump", type=float, default=DEFAULT_RANDOM_JUMP)
    parser.add_argument("--top-k", type=int, default=DEFAULT_TOP_K)
    parser.add_argument("--num-partitions", type=int, help="Partitions for the adjacency and rank tables")
    parser.add_argument("--master", type=str, default="local[*]")

    parser.add_argument("--validate", action="store_true", help="Validate PageRank results")
    parser.add_argument("--epsilon", type=float, default=1e-4, help="Tolerance on total mass for --validate")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RankingConfig:
    if args.num_nodes is None:
        raise ConfigurationError("--num-nodes is required")
    return RankingConfig(
        node_count=args.num_nodes,
        iterations=args.iterations,
        random_jump=args.random_jump,
        top_k=args.top_k,
        num_partitions=args.num_partitions,
    )


def write_ranks(path: str, ranks: List[Tuple[int, float]]) -> None:
    with open(path, "w") as f:
        for nid, r in ranks:
            f.write(f"{nid}\t{r}\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = build_config(args)
    except LogRankError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    logger.info("Running with %s", config)

    spark = SparkSession.builder.appName("LogRank PageRank").master(args.master).getOrCreate()
    try:
        return run(spark, args, config)
    except LogRankError as e:
        logger.error("%s", e)
        return 1
    finally:
        spark.stop()


def run(spark: SparkSession, args: argparse.Namespace, config: RankingConfig) -> int:
    sc = spark.sparkContext
    num_partitions = config.num_partitions or max(sc.defaultParallelism * 2, 8)

    if args.generate:
        records = generate_synthetic_graph(config.node_count, args.num_edges, seed=args.seed)
        if args.output_graph:
            save_adjacency_list(records, args.output_graph)
        adjacency = adjacency_from_records(sc, records, num_partitions)
    else:
        adjacency = load_adjacency(sc, args.input, num_partitions)

    top, ranks, stats = rank_pages(
        adjacency, config.node_count, config.iterations, config.top_k,
        random_jump=config.random_jump, num_partitions=num_partitions, track_timing=True
    )

    for nid, log_mass in top:
        print(f"node={nid} log_mass={log_mass:.6f} mass={math.exp(log_mass):.8f}")
    if stats.get("total_time") is not None:
        print(f"Total time: {stats['total_time']:.4f}s over {stats['iterations']} iterations")

    if args.output:
        write_ranks(args.output, top)

    if args.validate:
        print("\n=== Validation ===")
        is_valid, details = validate(ranks, config.node_count, args.epsilon)
        if is_valid:
            print("Validation PASSED")
        else:
            print(f"Validation FAILED: {details.get('reason', 'Unknown')}")
        if "rank_sum" in details:
            print(f"  Rank sum: {details['rank_sum']:.6f}")
        print(f"  Nodes: {details.get('num_nodes', 'N/A')}, Ranks: {details.get('num_ranks', 'N/A')}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
