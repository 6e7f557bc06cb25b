"""
Force-directed graph specification.

Draws every country as a node and links consecutive dataset rows in a ring.
The ring is synthetic: it exists so the force layout has edges to simulate,
not because the data relates the countries.
"""

from src.dashboard.base import ChartSpec
from src.dashboard.data_queries import GraphData


def create_force_graph_spec(
    chart_id: str,
    data: GraphData,
    *,
    width: int = 800,
    height: int = 600,
    link_distance: int = 100,
    charge_strength: int = -50,
    node_radius: int = 5,
) -> ChartSpec:
    """Create a force-directed graph specification.

    Args:
        chart_id: Unique identifier for the chart
        data: Graph data with nodes and ring links
        width: Chart width in pixels
        height: Chart height in pixels
        link_distance: Target link length for the link force
        charge_strength: Many-body force strength (negative repels)
        node_radius: Circle radius for nodes

    Returns:
        ChartSpec for D3 force simulation rendering
    """
    return ChartSpec(
        chart_id=chart_id,
        chart_type="force_graph",
        data={
            "nodes": [node.to_dict() for node in data.nodes],
            "links": [link.to_dict() for link in data.links],
        },
        config={
            "width": width,
            "height": height,
            "linkDistance": link_distance,
            "chargeStrength": charge_strength,
            "center": [width / 2, height / 2],
            "nodeRadius": node_radius,
            "nodeColor": "steelblue",
            "linkColor": "#aaa",
            "synthetic": data.synthetic,
        },
        interactions=[
            {
                "event": "drag",
                "action": "pin_node",
                "params": {"alphaTarget": 0.3, "releaseOnEnd": True},
            },
            {
                "event": "hover",
                "action": "show_tooltip",
                "params": {"field": "id"},
            },
        ],
        annotations=[
            {
                "type": "note",
                "text": "Links join consecutive dataset rows in a ring and do not represent real relationships.",
            },
        ],
    )
