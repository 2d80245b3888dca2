"""Layered data-flow graph construction.

Classes are bucketed into Controller, Service, Repository, Entity and DTO
by name suffix and annotation. The first four become nodes on layers 0-3.
Edges connect every node of a layer with every node of the next layer:
this is a synthetic connectivity model, not a resolved call graph.
"""

import logging
from collections.abc import Sequence

from springlens.analyzers.rules import Rule, RuleTable
from springlens.models.dataflow import (
    DataFlowEdge,
    DataFlowGraph,
    DataFlowNode,
    DataFlowSummary,
    FlowPath,
    Layer,
    LayerInfo,
)
from springlens.models.facts import ClassFact

logger = logging.getLogger(__name__)

DTO = "DTO"
DTO_SUFFIXES = ("DTO", "Dto", "Request", "Response")

# Bucket precedence: controller > service > repository > entity > DTO
BUCKET_RULES: RuleTable[ClassFact, str | None] = RuleTable(
    [
        Rule(
            "controller",
            lambda c: c.name.endswith("Controller")
            or c.has_annotation("Controller")
            or c.has_annotation("RestController"),
            "CONTROLLER",
        ),
        Rule(
            "service",
            lambda c: c.name.endswith("Service") or c.has_annotation("Service"),
            "SERVICE",
        ),
        Rule(
            "repository",
            lambda c: c.name.endswith("Repository") or c.has_annotation("Repository"),
            "REPOSITORY",
        ),
        Rule("entity", lambda c: c.has_annotation("Entity"), "ENTITY"),
        Rule("dto", lambda c: c.name.endswith(DTO_SUFFIXES), DTO),
    ],
    default=None,
)

BUCKET_LAYERS = {
    "CONTROLLER": Layer.API,
    "SERVICE": Layer.SERVICE,
    "REPOSITORY": Layer.REPOSITORY,
    "ENTITY": Layer.ENTITY,
}

# (source layer, target layer, edge type, label)
LAYER_LINKS = (
    (Layer.API, Layer.SERVICE, "CALLS", "service call"),
    (Layer.SERVICE, Layer.REPOSITORY, "CALLS", "data access"),
    (Layer.REPOSITORY, Layer.ENTITY, "USES", "entity mapping"),
)

NODE_ID_PREFIX = {
    Layer.API: "API",
    Layer.SERVICE: "SERVICE",
    Layer.REPOSITORY: "REPOSITORY",
    Layer.ENTITY: "ENTITY",
}


def step_description(node: DataFlowNode, endpoint_path: str) -> str:
    """Human-readable description of one flow path step."""
    if node.layer is Layer.API:
        return f"API Endpoint: {endpoint_path}"
    if node.layer is Layer.SERVICE:
        return f"Process in {node.class_name}"
    if node.layer is Layer.REPOSITORY:
        return f"Access data via {node.class_name}"
    return f"Entity: {node.class_name}"


class DataFlowGrapher:
    """Builds the layered data-flow graph from the class fact table."""

    def __init__(self, max_flow_paths: int = 10) -> None:
        """Initialize the grapher.

        Args:
            max_flow_paths: Number of endpoints that seed a flow path
        """
        self.max_flow_paths = max_flow_paths

    def build(self, classes: Sequence[ClassFact]) -> DataFlowGraph:
        """Build the graph.

        Args:
            classes: Class facts in discovery order

        Returns:
            DataFlowGraph with nodes, edges, flow paths, layers and summary
        """
        graph = DataFlowGraph()
        counts = dict.fromkeys([*BUCKET_LAYERS, DTO], 0)

        for fact in classes:
            bucket = BUCKET_RULES.classify(fact)
            if bucket is None:
                continue
            counts[bucket] += 1
            layer = BUCKET_LAYERS.get(bucket)
            if layer is None:
                continue
            graph.add_node(
                DataFlowNode(
                    id=f"{NODE_ID_PREFIX[layer]}_{len(graph.nodes)}",
                    name=fact.name,
                    node_type=bucket,
                    class_name=fact.name,
                    layer=layer,
                )
            )

        for source_layer, target_layer, edge_type, label in LAYER_LINKS:
            for source in graph.nodes_in(source_layer):
                for target in graph.nodes_in(target_layer):
                    graph.add_edge(
                        DataFlowEdge(
                            id=f"edge_{len(graph.edges)}",
                            source=source.id,
                            target=target.id,
                            edge_type=edge_type,
                            label=label,
                        )
                    )

        graph.flow_paths = self._flow_paths(graph, classes)
        graph.layers = [
            LayerInfo(
                name=layer.display_name,
                depth=layer.value,
                components=[n.class_name for n in graph.nodes_in(layer)],
            )
            for layer in Layer
            if graph.nodes_in(layer)
        ]
        graph.summary = DataFlowSummary(
            total_controllers=counts["CONTROLLER"],
            total_services=counts["SERVICE"],
            total_repositories=counts["REPOSITORY"],
            total_entities=counts["ENTITY"],
            total_dtos=counts[DTO],
            total_nodes=graph.node_count,
            total_flows=len(graph.flow_paths),
            layer_count=len(graph.layers),
            avg_layer_depth=(
                sum(layer.depth for layer in graph.layers) // len(graph.layers)
                if graph.layers
                else 0
            ),
        )

        logger.info(
            f"Data flow: {graph.node_count} node(s), {graph.edge_count} edge(s), "
            f"{len(graph.flow_paths)} path(s)"
        )
        return graph

    def _flow_paths(self, graph: DataFlowGraph, classes: Sequence[ClassFact]) -> list[FlowPath]:
        """One path per endpoint, through the first node of each populated layer."""
        representatives = []
        for layer in Layer:
            nodes = graph.nodes_in(layer)
            if nodes:
                representatives.append(nodes[0])
        if not representatives:
            return []

        endpoints = [e for c in classes for e in c.endpoints][: self.max_flow_paths]
        paths = []
        for index, endpoint in enumerate(endpoints):
            paths.append(
                FlowPath(
                    id=f"path_{index}",
                    name=endpoint.signature,
                    endpoint=endpoint.path,
                    return_type=endpoint.return_type,
                    node_ids=[n.id for n in representatives],
                    descriptions=[step_description(n, endpoint.path) for n in representatives],
                )
            )
        return paths
