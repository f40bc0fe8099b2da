import matplotlib.pyplot as plt

from trailplanner.domain import NodeWaypoint
from trailplanner.plotting import plot_route, render_route_png
from trailplanner.route import Route


def test_plot_graph_only(routing_graph):
    fig = plot_route(routing_graph)
    ax = fig.axes[0]
    # One line per undirected link
    assert len(ax.lines) == routing_graph.num_edges() // 2
    plt.close(fig)


def test_plot_with_route_is_saved(routing_graph, router, tmp_path):
    route = Route.from_waypoints(
        [NodeWaypoint(50.0, 10.0, "1"), NodeWaypoint(50.0004, 10.0, "5")], router
    )
    output = tmp_path / "route.png"

    fig = plot_route(routing_graph, route, output_path=output)

    labels = fig.axes[0].get_legend_handles_labels()[1]
    assert "Waypoints" in labels
    assert any(label.startswith("Route (") for label in labels)
    assert output.exists()
    plt.close(fig)


def test_render_png(routing_graph):
    open_figures = len(plt.get_fignums())
    png = render_route_png(routing_graph)
    assert png.startswith(b"\x89PNG")
    assert len(plt.get_fignums()) == open_figures
