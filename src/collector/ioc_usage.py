import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

from tree_sitter import Node

from src.graph.graph_structures import DepId, IocDepsByFile, ModuleId
from src.parsing.js_parser import (
    ParsedSource,
    array_elements,
    call_arguments,
    callee_name,
    iter_nodes,
    node_text,
    object_properties,
    top_level_const_values,
    unwrap_expression,
)

DEFAULT_DEFINE_DEPS_FUNCTIONS = ("defineDeps",)
DEFAULT_DEFINE_COMPONENT_FUNCTIONS = ("defineComponent", "_defineComponent")


def local_define_deps_names(root: Node, define_deps_functions: Sequence[str] = DEFAULT_DEFINE_DEPS_FUNCTIONS) -> Set[str]:
    """Configured names plus the local aliases they are imported under, e.g. `import { defineDeps as dd }`."""
    names = set(define_deps_functions)
    for statement in root.named_children:
        if statement.type != "import_statement":
            continue
        for spec in iter_nodes(statement):
            if spec.type != "import_specifier":
                continue
            imported = spec.child_by_field_name("name")
            alias = spec.child_by_field_name("alias")
            if alias is not None and node_text(imported) in define_deps_functions:
                names.add(node_text(alias))
    return names


def _dep_ids_from_container(node: Optional[Node], const_values: Dict[str, Node]) -> List[str]:
    node = unwrap_expression(node)
    if node is not None and node.type in ("identifier", "shorthand_property_identifier"):
        node = unwrap_expression(const_values.get(node_text(node)))
    if node is None:
        return []
    if node.type == "object":
        return [node_text(value) for value in object_properties(node).values()]
    if node.type == "array":
        return [node_text(element) for element in array_elements(node)]
    return []


def collect_ioc_dep_ids(parsed: ParsedSource,
                        define_deps_functions: Sequence[str] = DEFAULT_DEFINE_DEPS_FUNCTIONS,
                        define_component_functions: Sequence[str] = DEFAULT_DEFINE_COMPONENT_FUNCTIONS) -> List[DepId]:
    """
    DepIds a module requests from the IoC container, in first-seen order.

    Recognised forms:
        defineDeps({ logger: DEPS.Logger })      -> object values
        defineDeps([DEPS.Logger, DEPS.First])    -> array elements
        defineComponent({ deps: { a: DEPS.A } }) -> values of the `deps` object

    A `deps` value or defineDeps argument that names a top-level const (including
    the `{ deps }` shorthand) is read from that const's initializer. defineDeps
    imported under an alias is recognised by its local name.
    """
    if parsed.root is None:
        return []
    const_values = top_level_const_values(parsed.root)
    define_deps_names = local_define_deps_names(parsed.root, define_deps_functions)
    found: List[str] = []
    for node in iter_nodes(parsed.root):
        if node.type != "call_expression":
            continue
        name = callee_name(node)
        if name is None:
            continue
        args = call_arguments(node)
        if not args:
            continue
        if name in define_deps_names:
            found.extend(_dep_ids_from_container(args[0], const_values))
        elif name in define_component_functions:
            options = unwrap_expression(args[0])
            if options is not None and options.type == "identifier":
                options = const_values.get(node_text(options))
            found.extend(_dep_ids_from_container(object_properties(options).get("deps"), const_values))
    return [DepId(dep_id) for dep_id in dict.fromkeys(d for d in found if d)]


def merge_ioc_deps(target: IocDepsByFile, module_id: str, dep_ids: Iterable[str]) -> None:
    existing = target.setdefault(ModuleId(module_id), [])
    for dep_id in dep_ids:
        if dep_id not in existing:
            existing.append(DepId(dep_id))


def load_ioc_deps_file(path: Union[str, Path], verbose: bool = False) -> IocDepsByFile:
    """
    Loads a precomputed module -> DepId list mapping from JSON. A missing or malformed
    file yields an empty mapping.
    """
    result: IocDepsByFile = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        if verbose:
            print(f"IocUsageCollector Warning: Could not load IoC deps file {path}: {e}")
        return result
    if not isinstance(data, dict):
        if verbose:
            print(f"IocUsageCollector Warning: IoC deps file {path} is not a JSON object.")
        return result
    for module_id, dep_ids in data.items():
        if isinstance(dep_ids, list):
            merge_ioc_deps(result, module_id, [str(d) for d in dep_ids])
    return result
