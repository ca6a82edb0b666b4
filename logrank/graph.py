import logging
import random
from typing import Iterable, List, Optional, Tuple

from py4j.protocol import Py4JJavaError
from pyspark import RDD, SparkContext

from logrank.errors import ConfigurationError, ParseError

logger = logging.getLogger(__name__)

AdjacencyRecord = Tuple[int, Tuple[int, ...]]


def parse_line(line: str, line_number: Optional[int] = None) -> AdjacencyRecord:
	"""
	Decode one adjacency line: "<node> <neighbor> <neighbor> ...".

	A line holding only the node id describes a dangling node.
	"""
	parts = line.split()
	if not parts:
		raise ParseError("empty adjacency line", line_number, line)
	ids = []
	for token in parts:
		try:
			ids.append(int(token))
		except ValueError:
			raise ParseError(f"invalid node id {token!r}", line_number, line) from None
	return ids[0], tuple(ids[1:])


def _decode(indexed: Tuple[str, int]):
	# Bad lines travel back as data; the driver raises the ParseError itself.
	line, index = indexed
	try:
		return parse_line(line), None
	except ParseError:
		return None, (index + 1, line)


def load_adjacency(sc: SparkContext, path: str, num_partitions: int) -> RDD:
	try:
		lines = sc.textFile(path, minPartitions=num_partitions).zipWithIndex()
		decoded = lines.filter(lambda x: x[0].strip() != "").map(_decode).cache()
		bad = decoded.filter(lambda x: x[1] is not None).map(lambda x: x[1]).takeOrdered(1)
	except Py4JJavaError as e:
		raise ConfigurationError(f"cannot read adjacency input {path}: {e.java_exception.getMessage()}") from None

	if bad:
		decoded.unpersist()
		line_number, line = bad[0]
		logger.error("Malformed adjacency list %s", path)
		parse_line(line, line_number)

	adjacency = _partition(decoded.map(lambda x: x[0]), num_partitions)
	# Materialize the store so the input is read exactly once.
	record_count = adjacency.count()
	decoded.unpersist()
	logger.info("Loaded %d adjacency records from %s into %d partitions", record_count, path, num_partitions)
	return adjacency


def adjacency_from_records(sc: SparkContext, records: Iterable[AdjacencyRecord], num_partitions: int) -> RDD:
	rows = [(int(node), tuple(int(n) for n in neighbors)) for node, neighbors in records]
	return _partition(sc.parallelize(rows, num_partitions), num_partitions)


def _partition(records: RDD, num_partitions: int) -> RDD:
	# Repeated lines for one node are merged into a single neighbor list.
	return records.reduceByKey(lambda a, b: a + b, numPartitions=num_partitions).cache()


def node_domain(adjacency: RDD, num_partitions: int) -> RDD:
	"""Every node id in the graph, including nodes seen only as neighbors, keyed to None."""
	return (adjacency
		.flatMap(lambda x: [x[0], *x[1]])
		.distinct(num_partitions)
		.map(lambda node: (node, None))
		.partitionBy(num_partitions)
		.cache())


def generate_synthetic_graph(num_nodes: int, num_edges: int, seed: Optional[int] = None) -> List[AdjacencyRecord]:
	rnd = random.Random(seed)
	neighbors: List[List[int]] = [[] for _ in range(num_nodes)]
	edges = set()
	attempts = 0
	max_attempts = max(num_edges * 10, 1)
	while len(edges) < num_edges and attempts < max_attempts:
		src = rnd.randint(0, num_nodes - 1)
		dst = rnd.randint(0, num_nodes - 1)
		if src != dst and (src, dst) not in edges:
			edges.add((src, dst))
			neighbors[src].append(dst)
		attempts += 1
	return [(i, tuple(neighbors[i])) for i in range(num_nodes)]


def save_adjacency_list(records: Iterable[AdjacencyRecord], filepath: str) -> None:
	with open(filepath, "w", encoding="utf-8") as f:
		for node, out_neighbors in records:
			f.write(" ".join(str(n) for n in (node, *out_neighbors)) + "\n")
