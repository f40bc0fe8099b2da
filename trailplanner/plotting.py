import io

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt


def plot_route(routing_graph, route=None, output_path=None):
    """
    Plot the trail graph using matplotlib directly with the route on top.
    Returns the figure; it is also saved when output_path is given.
    """
    fig, ax = plt.subplots(figsize=(15, 10))

    # Plot graph edges, each undirected link once
    seen = set()
    for edge in routing_graph.edges():
        key = tuple(sorted((edge.from_id, edge.to_id)))
        if key in seen:
            continue
        seen.add(key)
        start_node = routing_graph.nodes[edge.from_id]
        end_node = routing_graph.nodes[edge.to_id]
        ax.plot(
            [start_node.lon, end_node.lon],
            [start_node.lat, end_node.lat],
            "gray",
            linewidth=0.5,
            alpha=0.5,
        )

    # Plot graph nodes
    original = [n for n in routing_graph.nodes.values() if not n.is_intermediate]
    intermediate = [n for n in routing_graph.nodes.values() if n.is_intermediate]
    if original:
        ax.scatter(
            [n.lon for n in original],
            [n.lat for n in original],
            c="blue",
            s=10,
            alpha=0.6,
            label="Trail Nodes",
        )
    if intermediate:
        ax.scatter(
            [n.lon for n in intermediate],
            [n.lat for n in intermediate],
            c="lightblue",
            s=4,
            alpha=0.6,
            label="Intermediate Nodes",
        )

    if route is not None and not route.is_empty:
        coords = route.collect_coordinates()
        ax.plot(
            [c.lon for c in coords],
            [c.lat for c in coords],
            "red",
            linewidth=2,
            label=f"Route ({route.total_distance / 1000:.2f} km)",
        )
        ax.scatter(
            [w.lon for w in route.waypoints],
            [w.lat for w in route.waypoints],
            c="green",
            s=100,
            alpha=0.8,
            label="Waypoints",
        )

    ax.set_title("Trail Network")
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.grid(True, alpha=0.3)
    ax.axis("equal")
    if ax.get_legend_handles_labels()[0]:
        ax.legend()
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path)
    return fig


def render_route_png(routing_graph, route=None) -> bytes:
    """Render plot_route as PNG bytes and release the figure"""
    fig = plot_route(routing_graph, route)
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format="png")
    finally:
        plt.close(fig)
    return buffer.getvalue()
