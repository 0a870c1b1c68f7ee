import asyncio
import re
from typing import Dict, Iterable, List, Optional, Set

from tree_sitter import Node

from src.graph.graph_structures import DynamicImportsByFile, ModuleId
from src.parsing.js_parser import (
    ParsedSource,
    dynamic_import_specifier,
    is_dynamic_import_call,
    is_import_meta_glob,
    iter_nodes,
)
from src.resolver.import_resolver import ResolveFn, clean_module_id

_PROCESSABLE_RE = re.compile(r"\.(vue|ts|tsx|js|jsx)$")


def should_process_file(module_id: str) -> bool:
    """Script and Vue modules outside node_modules; a `?query` suffix is ignored."""
    if "node_modules" in module_id:
        return False
    return bool(_PROCESSABLE_RE.search(clean_module_id(module_id)))


def has_dynamic_import_syntax(source_text: str) -> bool:
    return "import(" in source_text or "import.meta.glob" in source_text


def find_dynamic_import_specifiers(root: Node,
                                   module_id: str = "",
                                   enable_glob_imports: bool = True,
                                   verbose: bool = False) -> List[str]:
    """
    Raw specifiers of every import() call under `root` with a literal argument,
    in source order. import.meta.glob calls are reported but not expanded.
    """
    specifiers: List[str] = []
    for node in iter_nodes(root):
        if is_dynamic_import_call(node):
            specifier = dynamic_import_specifier(node)
            if specifier is not None:
                specifiers.append(specifier)
            elif verbose:
                row = node.start_point[0] + 1
                print(f"DynamicImportCollector: Skipping computed import() at {module_id}:{row}")
            continue
        if enable_glob_imports:
            method = is_import_meta_glob(node)
            if method and verbose:
                print(f"DynamicImportCollector: Found import.meta.{method} in {module_id}, not expanded")
    return specifiers


async def _resolve_one(resolve: ResolveFn, specifier: str, importer: str, verbose: bool) -> Optional[str]:
    try:
        return await resolve(specifier, importer)
    except Exception as e:
        if verbose:
            print(f"DynamicImportCollector Warning: Failed to resolve {specifier} from {importer}: {e}")
        return None


async def resolve_specifiers(specifiers: Iterable[str],
                             importer: str,
                             resolve: ResolveFn,
                             verbose: bool = False) -> Dict[str, Optional[str]]:
    """Resolves every distinct specifier concurrently; one failure never affects the others."""
    unique = list(dict.fromkeys(specifiers))
    results = await asyncio.gather(*(_resolve_one(resolve, spec, importer, verbose) for spec in unique))
    return dict(zip(unique, results))


async def collect_dynamic_imports(source_text: str,
                                  module_id: str,
                                  parsed: ParsedSource,
                                  resolve: ResolveFn,
                                  enable_glob_imports: bool = True,
                                  verbose: bool = False) -> Set[ModuleId]:
    """
    Collects the resolved targets of every dynamic import in one module.

    Handles bare `import('...')`, wrapped forms such as
    `defineAsyncComponent(() => import('...'))` and template literals without
    substitutions. Unresolvable specifiers are dropped.

    Args:
        source_text: Module source; used for a cheap pre-check before walking the tree.
        module_id: Importer id the specifiers are resolved against.
        parsed: Parsed tree for the module.
        resolve: Async resolver callable.
        enable_glob_imports: Report import.meta.glob calls when verbose.
        verbose: Print diagnostics.

    Returns:
        Set of resolved module ids.
    """
    targets: Set[ModuleId] = set()
    if parsed.root is None or not has_dynamic_import_syntax(source_text):
        return targets
    importer = clean_module_id(module_id)
    specifiers = find_dynamic_import_specifiers(parsed.root, importer, enable_glob_imports, verbose)
    if not specifiers:
        return targets
    resolved = await resolve_specifiers(specifiers, importer, resolve, verbose)
    for specifier, target in resolved.items():
        if target:
            targets.add(ModuleId(clean_module_id(target)))
        elif verbose:
            print(f"DynamicImportCollector: Unresolved dynamic import '{specifier}' in {importer}")
    return targets


class DynamicImportsCollector:
    """Accumulates dynamic-import targets per module across repeated compilations."""

    def __init__(self):
        self._by_file: DynamicImportsByFile = {}

    def add(self, module_id: str, imports: Iterable[str]) -> None:
        existing = self._by_file.setdefault(ModuleId(module_id), set())
        existing.update(ModuleId(i) for i in imports)

    def get(self) -> DynamicImportsByFile:
        return self._by_file

    def clear(self) -> None:
        self._by_file.clear()

    def __len__(self) -> int:
        return len(self._by_file)
