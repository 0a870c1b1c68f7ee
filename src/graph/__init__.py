from .graph_walk import RouteGraphResult, build_route_deps_from_graph, walk_module_graph

__all__ = ["RouteGraphResult", "build_route_deps_from_graph", "walk_module_graph"]
