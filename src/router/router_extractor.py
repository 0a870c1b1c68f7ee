import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from tree_sitter import Node

from src.parsing.js_parser import (
    JsSourceParser,
    ParsedSource,
    array_elements,
    call_arguments,
    callee_name,
    dynamic_import_specifier,
    is_dynamic_import_call,
    iter_nodes,
    node_text,
    object_properties,
    string_literal_value,
    top_level_const_values,
    unwrap_expression,
)
from src.resolver.import_resolver import ResolveFn, clean_module_id
from src.specs.schemas import ParsedRoute, RouterExtraction

ROUTER_FILE_SUFFIXES = (".ts", ".js", ".tsx", ".jsx")
CREATE_ROUTER_FUNCTIONS = ("createRouter",)


@dataclass
class StaticImport:
    local_name: str
    source: str
    resolved_path: Optional[str] = None


@dataclass
class _ComponentInfo:
    import_path: Optional[str]
    is_dynamic: bool
    identifier: Optional[str] = None


def build_full_path(parent_path: str, current_path: str) -> str:
    if current_path.startswith("/"):
        return current_path
    if not parent_path or parent_path == "/":
        return "/" + current_path
    return parent_path + "/" + current_path


def find_router_files(router_dir: Path) -> List[Path]:
    """Script files directly inside the router directory, spec/test files excluded."""
    if not router_dir.is_dir():
        return []
    files = []
    for entry in sorted(router_dir.iterdir()):
        name = entry.name
        if not entry.is_file() or not name.endswith(ROUTER_FILE_SUFFIXES):
            continue
        if ".spec." in name or ".test." in name or name.endswith(".d.ts"):
            continue
        files.append(entry)
    return files


def collect_static_imports(root: Node) -> List[StaticImport]:
    """Default and named (possibly aliased) value imports at the top level of a module."""
    imports: List[StaticImport] = []
    for statement in root.named_children:
        if statement.type != "import_statement":
            continue
        if any(child.type == "type" for child in statement.children):
            continue
        source = string_literal_value(statement.child_by_field_name("source"))
        if not source:
            continue
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        if clause is None:
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                imports.append(StaticImport(local_name=node_text(part), source=source))
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    if any(child.type == "type" for child in spec.children):
                        continue
                    local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    if local is not None:
                        imports.append(StaticImport(local_name=node_text(local), source=source))
    return imports


def find_dynamic_import(node: Node) -> Optional[str]:
    """
    Literal specifier of the first import() call anywhere under `node`, e.g. inside
    `loadView(() => import('...'))` or a Promise-wrapped loader.
    """
    for candidate in iter_nodes(node):
        if is_dynamic_import_call(candidate):
            specifier = dynamic_import_specifier(candidate)
            if specifier is not None:
                return specifier
    return None


def _extract_component_info(node: Node) -> _ComponentInfo:
    node = unwrap_expression(node)
    if node.type in ("identifier", "shorthand_property_identifier"):
        return _ComponentInfo(import_path=None, is_dynamic=False, identifier=node_text(node))
    import_path = find_dynamic_import(node)
    if import_path:
        return _ComponentInfo(import_path=import_path, is_dynamic=True)
    return _ComponentInfo(import_path=None, is_dynamic=False)


class _RouteCollector:
    def __init__(self, const_values: Dict[str, Node]):
        self.const_values = const_values
        self.routes: List[Tuple[ParsedRoute, _ComponentInfo]] = []

    def deref(self, node: Optional[Node]) -> Optional[Node]:
        node = unwrap_expression(node)
        if node is not None and node.type in ("identifier", "shorthand_property_identifier"):
            return unwrap_expression(self.const_values.get(node_text(node)))
        return node

    def process_routes_array(self, array_node: Optional[Node], parent_path: str) -> None:
        for element in array_elements(self.deref(array_node)):
            element = self.deref(element)
            if element is not None and element.type == "object":
                self.process_route_object(element, parent_path)

    def process_route_object(self, route_node: Node, parent_path: str) -> None:
        props = object_properties(route_node)
        path_node = props.get("path")
        path = string_literal_value(path_node) if path_node is not None else None
        full_path = build_full_path(parent_path, path or "")

        component_node = props.get("component")
        if component_node is not None:
            info = _extract_component_info(component_node)
            route = ParsedRoute(
                path=path or "",
                full_path=full_path,
                entry_module_id=info.import_path,
                is_dynamic=info.is_dynamic,
                component_identifier=info.identifier,
            )
            self.routes.append((route, info))

        children_node = props.get("children")
        if children_node is not None:
            self.process_routes_array(children_node, full_path)


def extract_route_definitions(parsed: ParsedSource) -> List[Tuple[ParsedRoute, _ComponentInfo]]:
    """Routes declared through createRouter({ routes }) calls, before any resolution."""
    if parsed.root is None:
        return []
    collector = _RouteCollector(top_level_const_values(parsed.root))
    for node in iter_nodes(parsed.root):
        if node.type != "call_expression" or callee_name(node) not in CREATE_ROUTER_FUNCTIONS:
            continue
        args = call_arguments(node)
        if not args:
            continue
        routes_node = object_properties(collector.deref(args[0])).get("routes")
        if routes_node is not None:
            collector.process_routes_array(routes_node, "")
    return collector.routes


async def _safe_resolve(resolve: ResolveFn, source: str, importer: str, verbose: bool) -> Optional[str]:
    try:
        resolved = await resolve(source, importer)
    except Exception as e:
        if verbose:
            print(f"RouterExtractor Warning: Failed to resolve {source} from {importer}: {e}")
        return None
    return clean_module_id(resolved) if resolved else None


async def extract_routes_from_source(parsed: ParsedSource,
                                     file_path: Union[str, Path],
                                     resolve: ResolveFn,
                                     verbose: bool = False) -> Tuple[List[ParsedRoute], Dict[str, str]]:
    """Routes of one parsed router file with entry modules resolved, plus its static import table."""
    importer = Path(file_path).as_posix()
    static_imports = collect_static_imports(parsed.root) if parsed.root is not None else []
    resolved_sources = await asyncio.gather(
        *(_safe_resolve(resolve, imp.source, importer, verbose) for imp in static_imports)
    )
    import_table: Dict[str, str] = {}
    for imp, resolved in zip(static_imports, resolved_sources):
        imp.resolved_path = resolved
        if resolved:
            import_table[imp.local_name] = resolved

    definitions = extract_route_definitions(parsed)
    dynamic_resolutions = await asyncio.gather(
        *(_safe_resolve(resolve, info.import_path, importer, verbose)
          for _, info in definitions if info.is_dynamic and info.import_path)
    )
    dynamic_iter = iter(dynamic_resolutions)

    routes: List[ParsedRoute] = []
    for route, info in definitions:
        if info.is_dynamic and info.import_path:
            route.entry_module_id = next(dynamic_iter)
        elif info.identifier:
            route.entry_module_id = import_table.get(info.identifier)
        else:
            route.entry_module_id = None
        if route.entry_module_id is None and verbose:
            print(f"RouterExtractor: Route {route.full_path} in {importer} has no resolvable component")
        routes.append(route)

    if verbose:
        print(f"RouterExtractor: Found {len(routes)} routes in {importer}")
    return routes, import_table


async def parse_router_files(router_dir: Union[str, Path],
                             root_dir: Union[str, Path],
                             parser: JsSourceParser,
                             resolve: ResolveFn,
                             verbose: bool = False) -> RouterExtraction:
    """
    Extracts the flattened route list from every router file in `router_dir`.
    Files that fail to read or parse are skipped; routes whose component cannot be
    resolved are kept with entry_module_id None.
    """
    absolute_router_dir = (Path(root_dir) / router_dir).resolve()
    extraction = RouterExtraction()

    for file_path in find_router_files(absolute_router_dir):
        parsed = parser.parse_file(file_path)
        if parsed.has_errors or parsed.root is None:
            if verbose:
                print(f"RouterExtractor Warning: Failed to parse {file_path}: {parsed.error_message}")
            continue
        routes, import_table = await extract_routes_from_source(parsed, file_path, resolve, verbose)
        extraction.routes.extend(routes)
        extraction.static_imports.update(import_table)

    return extraction
