"""Layered data-flow graph entities.

The graph is a DAG over four architectural layers. Edges only ever point
from a lower layer number to a higher one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Layer(Enum):
    """Architectural tier, ordered from the HTTP edge to persistence."""

    API = 0
    SERVICE = 1
    REPOSITORY = 2
    ENTITY = 3

    @property
    def display_name(self) -> str:
        return _LAYER_NAMES[self]


_LAYER_NAMES = {
    Layer.API: "API Layer",
    Layer.SERVICE: "Service Layer",
    Layer.REPOSITORY: "Repository Layer",
    Layer.ENTITY: "Entity Layer",
}


@dataclass(frozen=True)
class DataFlowNode:
    """A class placed on a layer.

    Attributes:
        id: Node identifier ("<LAYER>_<n>")
        name: Display name
        node_type: Bucket name (CONTROLLER, SERVICE, REPOSITORY, ENTITY)
        class_name: Underlying class
        layer: Layer of the node
    """

    id: str
    name: str
    node_type: str
    class_name: str
    layer: Layer

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "node_type": self.node_type,
            "class_name": self.class_name,
            "layer": self.layer.value,
        }


@dataclass(frozen=True)
class DataFlowEdge:
    """Synthetic connection between nodes of adjacent layers."""

    id: str
    source: str
    target: str
    edge_type: str
    label: str
    data_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "edge_type": self.edge_type,
            "label": self.label,
            "data_type": self.data_type,
        }


@dataclass
class FlowPath:
    """Representative path from one endpoint down the layers.

    Attributes:
        id: Path identifier
        name: "<METHOD> <path>" of the seeding endpoint
        endpoint: Endpoint path
        return_type: Endpoint return type
        node_ids: Ordered node identifiers, one per populated layer
        descriptions: Human-readable step descriptions
    """

    id: str
    name: str
    endpoint: str
    return_type: str | None = None
    node_ids: list[str] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "endpoint": self.endpoint,
            "return_type": self.return_type,
            "node_ids": list(self.node_ids),
            "descriptions": list(self.descriptions),
        }


@dataclass
class LayerInfo:
    """Contents of one populated layer."""

    name: str
    depth: int
    components: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"name": self.name, "depth": self.depth, "components": list(self.components)}


@dataclass
class DataFlowSummary:
    """Bucket and layer counts."""

    total_controllers: int = 0
    total_services: int = 0
    total_repositories: int = 0
    total_entities: int = 0
    total_dtos: int = 0
    total_nodes: int = 0
    total_flows: int = 0
    layer_count: int = 0
    avg_layer_depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_controllers": self.total_controllers,
            "total_services": self.total_services,
            "total_repositories": self.total_repositories,
            "total_entities": self.total_entities,
            "total_dtos": self.total_dtos,
            "total_nodes": self.total_nodes,
            "total_flows": self.total_flows,
            "layer_count": self.layer_count,
            "avg_layer_depth": self.avg_layer_depth,
        }


@dataclass
class DataFlowGraph:
    """Nodes, edges and flow paths of one run.

    Attributes:
        nodes: Node ID -> node, in insertion order
        edges: Edges in insertion order
        flow_paths: Representative endpoint paths
        layers: Populated layers
        summary: Aggregated counts
    """

    nodes: dict[str, DataFlowNode] = field(default_factory=dict)
    edges: list[DataFlowEdge] = field(default_factory=list)
    flow_paths: list[FlowPath] = field(default_factory=list)
    layers: list[LayerInfo] = field(default_factory=list)
    summary: DataFlowSummary = field(default_factory=DataFlowSummary)

    def add_node(self, node: DataFlowNode) -> None:
        """Add a node to the graph."""
        self.nodes[node.id] = node

    def add_edge(self, edge: DataFlowEdge) -> None:
        """Add an edge, enforcing that it descends the layers.

        Raises:
            ValueError: If an endpoint is unknown or the edge does not go to a
                higher layer
        """
        source = self.nodes.get(edge.source)
        target = self.nodes.get(edge.target)
        if source is None or target is None:
            raise ValueError(f"Edge {edge.id} references an unknown node")
        if target.layer.value <= source.layer.value:
            raise ValueError(
                f"Edge {edge.id} must go to a higher layer "
                f"({source.layer.name} -> {target.layer.name})"
            )
        self.edges.append(edge)

    def nodes_in(self, layer: Layer) -> list[DataFlowNode]:
        """Nodes of one layer in insertion order."""
        return [n for n in self.nodes.values() if n.layer is layer]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges],
            "flow_paths": [p.to_dict() for p in self.flow_paths],
            "layers": [layer.to_dict() for layer in self.layers],
            "summary": self.summary.to_dict(),
        }
