import collections
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence, Set

from src.graph.graph_structures import (
    DepIdToDynamicImport,
    DynamicImportsByFile,
    IocDepsByFile,
    ModuleId,
    RouteModuleDeps,
    StaticImportsLookup,
)
from src.specs.schemas import ParsedRoute

DEFAULT_EXCLUDED_NAMESPACE = "node_modules"


@dataclass
class RouteGraphResult:
    dynamic_targets: Set[ModuleId] = field(default_factory=set)
    visited_modules: Set[ModuleId] = field(default_factory=set)


def walk_module_graph(entry_module_id: str,
                      dynamic_imports_by_file: Mapping[ModuleId, Iterable[ModuleId]],
                      ioc_deps_by_file: Mapping[ModuleId, Sequence[str]],
                      dep_id_to_dynamic_import: Mapping[str, ModuleId],
                      get_static_imports: StaticImportsLookup,
                      excluded_namespace: str = DEFAULT_EXCLUDED_NAMESPACE,
                      verbose: bool = False) -> RouteGraphResult:
    """
    Breadth-first walk from one entry module over three edge kinds.

    - Dynamic import() edges: target recorded and traversed.
    - Static import edges: traversed only, never recorded; ids inside the
      excluded namespace (third-party packages) are not followed.
    - IoC edges: a DepId that maps to a lazily loaded module behaves like a
      dynamic edge; a DepId with no mapping is a static registration and adds
      nothing.

    All three kinds share one queue so a lazily loaded module's own static,
    dynamic and IoC edges are followed in the same closure.
    """
    visited: Set[ModuleId] = set()
    dynamic_targets: Set[ModuleId] = set()
    queue = collections.deque([ModuleId(entry_module_id)])

    while queue:
        module_id = queue.popleft()
        if module_id in visited:
            continue
        visited.add(module_id)

        # 1. Dynamic imports
        for target in dynamic_imports_by_file.get(module_id, ()):
            dynamic_targets.add(target)
            if target not in visited:
                queue.append(target)

        # 2. Static imports
        for static_import in get_static_imports(module_id) or ():
            if excluded_namespace and excluded_namespace in static_import:
                continue
            if static_import not in visited:
                queue.append(ModuleId(static_import))

        # 3. IoC dependencies
        for dep_id in ioc_deps_by_file.get(module_id, ()):
            dynamic_import_path = dep_id_to_dynamic_import.get(dep_id)
            if dynamic_import_path:
                dynamic_targets.add(dynamic_import_path)
                if dynamic_import_path not in visited:
                    queue.append(dynamic_import_path)

    if verbose:
        print(f"GraphWalk: Walk from {entry_module_id}: visited {len(visited)} modules, "
              f"found {len(dynamic_targets)} dynamic targets")

    return RouteGraphResult(dynamic_targets=dynamic_targets, visited_modules=visited)


def build_route_deps_from_graph(routes: Sequence[ParsedRoute],
                                dynamic_imports_by_file: DynamicImportsByFile,
                                ioc_deps_by_file: IocDepsByFile,
                                dep_id_to_dynamic_import: DepIdToDynamicImport,
                                get_static_imports: StaticImportsLookup,
                                excluded_namespace: str = DEFAULT_EXCLUDED_NAMESPACE,
                                verbose: bool = False) -> RouteModuleDeps:
    """Route full path -> modules to load: the walk's dynamic targets plus the entry module."""
    route_deps: RouteModuleDeps = {}

    for route in routes:
        entry: Optional[str] = route.entry_module_id
        if not entry:
            if verbose:
                print(f"GraphWalk Warning: Route {route.full_path} has no entry module")
            route_deps[route.full_path] = set()
            continue

        result = walk_module_graph(
            entry,
            dynamic_imports_by_file,
            ioc_deps_by_file,
            dep_id_to_dynamic_import,
            get_static_imports,
            excluded_namespace=excluded_namespace,
            verbose=verbose,
        )
        result.dynamic_targets.add(ModuleId(entry))
        route_deps[route.full_path] = result.dynamic_targets

    return route_deps
