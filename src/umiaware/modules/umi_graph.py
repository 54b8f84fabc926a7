"""
UMI Graph - Barcode clustering by transitive Hamming similarity

Builds a similarity graph over the distinct UMIs observed in one duplicate
set and numbers its connected components. Two UMIs end up in the same group
when they are linked by a chain of UMIs each within the edit distance of the
next, even if the two ends of the chain are further apart.
"""

from __future__ import annotations

from collections.abc import Sequence

import networkx as nx

from umiaware.modules.umi_distance import hamming_distance
from umiaware.utils.logging import get_logger

logger = get_logger("umi_graph")


def build_similarity_graph(barcodes: Sequence[str], edit_distance_to_join: int) -> nx.Graph:
    """
    Build the undirected similarity graph over distinct barcodes.

    Nodes are the indices 0..k-1 of ``barcodes`` (inserted in order) and an
    edge joins i and j when their Hamming distance is at most the threshold.
    Every node carries a self loop since a barcode is at distance 0 from itself.

    Raises:
        ValueError: If the threshold is negative
        BarcodeLengthMismatch: If two barcodes differ in length
    """
    if edit_distance_to_join < 0:
        raise ValueError(f"edit_distance_to_join must be >= 0, got {edit_distance_to_join}")

    graph = nx.Graph()
    graph.add_nodes_from(range(len(barcodes)))
    for i, left in enumerate(barcodes):
        for j in range(i, len(barcodes)):
            if hamming_distance(left, barcodes[j]) <= edit_distance_to_join:
                graph.add_edge(i, j)
    return graph


def cluster_barcodes(barcodes: Sequence[str], edit_distance_to_join: int) -> dict[str, int]:
    """
    Assign each distinct barcode a group id.

    Components are discovered from unvisited nodes in increasing index order
    and numbered 1..G in discovery order.

    Args:
        barcodes: Distinct barcode values in a fixed order
        edit_distance_to_join: Maximum Hamming distance for a direct join

    Returns:
        Mapping of barcode -> group id (dense, starting at 1)
    """
    graph = build_similarity_graph(barcodes, edit_distance_to_join)

    groups: dict[str, int] = {}
    # connected_components walks nodes in insertion order using an explicit BFS queue
    for group_id, component in enumerate(nx.connected_components(graph), start=1):
        for index in component:
            groups[barcodes[index]] = group_id

    logger.debug(
        f"Clustered {len(barcodes)} distinct UMIs into "
        f"{len(set(groups.values()))} groups (edit distance {edit_distance_to_join})"
    )
    return groups
