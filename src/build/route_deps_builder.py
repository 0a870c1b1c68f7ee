import asyncio
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from tree_sitter import Node

from src.build.build_context import BuildContext
from src.build.emitter import render_placeholder_module
from src.chunks.bundle import chunk_maps
from src.chunks.chunk_mapper import add_matching_chunks, expand_with_static_chunks, map_modules_to_chunks
from src.collector.dynamic_imports import collect_dynamic_imports, should_process_file
from src.collector.ioc_usage import collect_ioc_dep_ids, load_ioc_deps_file
from src.graph.graph_structures import ModuleId, RouteDepsMap
from src.graph.graph_walk import build_route_deps_from_graph
from src.ioc.ioc_map_parser import parse_ioc_maps
from src.parsing.js_parser import JsSourceParser, string_literal_value
from src.resolver.import_resolver import ImportResolver, clean_module_id
from src.router.router_extractor import parse_router_files
from src.specs.schemas import BundleChunk

_IGNORED_DIRS = {"node_modules", "dist", ".git", ".vite", "coverage", "__tests__"}


def _is_test_file(name: str) -> bool:
    return ".spec." in name or ".test." in name or name.endswith(".d.ts")


def _is_type_only(node: Node) -> bool:
    return any(child.type == "type" for child in node.children)


def static_import_specifiers(root: Node) -> List[str]:
    """
    Sources of the top-level `import ... from`, side-effect `import '...'` and
    `export ... from` statements of a module. Type-only imports and re-exports
    are left out since they are erased from the emitted code.
    """
    specifiers: List[str] = []
    for statement in root.named_children:
        if statement.type not in ("import_statement", "export_statement"):
            continue
        if _is_type_only(statement):
            continue
        source = string_literal_value(statement.child_by_field_name("source"))
        if source:
            specifiers.append(source)
    return list(dict.fromkeys(specifiers))


class RouteDepsBuilder:
    """
    Drives one route dependency build for a project on disk.

    The lifecycle mirrors a bundler plugin: `build_start` reads the router and the
    IoC registration files, `compile_module` runs once per source module and feeds
    the BuildContext, and `generate_map` turns the finished context plus the
    emitted chunk list into the route -> files map.
    """

    def __init__(self, project_root: Union[str, Path], app_config: Dict[str, Any]):
        self.project_root = Path(project_root).resolve()
        if not self.project_root.is_dir():
            raise ValueError(f"Project root must be a valid directory: {self.project_root}")

        self.app_config = app_config
        self.verbose: bool = bool(app_config.get("general", {}).get("verbose", False))
        self.route_deps_config: Dict[str, Any] = app_config.get("route_deps", {})
        resolve_config: Dict[str, Any] = app_config.get("resolve", {})

        self.excluded_namespace: str = resolve_config.get("excluded_namespace", "node_modules")
        self.resolver = ImportResolver(
            self.project_root,
            aliases=resolve_config.get("aliases"),
            extensions=resolve_config.get("extensions"),
            excluded_namespace=self.excluded_namespace,
            verbose=self.verbose,
        )
        self.parser = JsSourceParser()
        self.context = BuildContext()

        self.router_dir = self.project_root / self.route_deps_config.get("router_dir", "src/ui/router")
        self.source_dir = self.project_root / self.route_deps_config.get("source_dir", "src")
        self.ioc_map_files: List[str] = list(self.route_deps_config.get("ioc_map_files") or [])
        self.virtual_module_id: str = self.route_deps_config.get("virtual_module_id", "virtual:route-deps-map")
        generated_module = app_config.get("output", {}).get("generated_module_path")
        self.generated_module_path: Optional[Path] = (
            (self.project_root / generated_module).resolve() if generated_module else None
        )

        self.dirty: bool = False
        self._lock = threading.Lock()

    # --- Lifecycle ---

    def discover_source_files(self) -> List[Path]:
        if not self.source_dir.is_dir():
            if self.verbose:
                print(f"RouteDepsBuilder Warning: Source directory {self.source_dir} does not exist.")
            return []
        files: List[Path] = []
        for path in sorted(self.source_dir.rglob("*")):
            if not path.is_file():
                continue
            relative_parts = path.relative_to(self.source_dir).parts
            if any(part in _IGNORED_DIRS for part in relative_parts[:-1]):
                continue
            if _is_test_file(path.name) or not should_process_file(path.as_posix()):
                continue
            files.append(path)
        if self.verbose:
            print(f"RouteDepsBuilder: Discovered {len(files)} source files under {self.source_dir}")
        return files

    async def build_start(self) -> None:
        """Reads routes and the DepId map into the context, replacing any earlier result."""
        extraction = await parse_router_files(
            self.router_dir, self.project_root, self.parser, self.resolver.resolve, self.verbose
        )
        self.context.set_routes(extraction.routes, extraction.static_imports)

        dep_id_map = await parse_ioc_maps(
            self.ioc_map_files, self.project_root, self.resolver.resolve, self.verbose
        )
        self.context.set_dep_id_map(dep_id_map)

        ioc_deps_file = self.route_deps_config.get("ioc_deps_file")
        if ioc_deps_file:
            for module_id, dep_ids in load_ioc_deps_file(self.project_root / ioc_deps_file, self.verbose).items():
                self.context.add_ioc_deps(self._normalize_module_id(module_id), dep_ids)

        if self.verbose:
            print(f"RouteDepsBuilder: build_start found {len(extraction.routes)} routes "
                  f"and {len(dep_id_map)} dynamic IoC deps")

    async def compile_module(self, file_path: Union[str, Path]) -> bool:
        """
        Collects static imports, dynamic imports and IoC usages of one module.

        Returns False when the module was skipped (not a script, unreadable or
        with syntax errors).
        """
        path = Path(file_path).resolve()
        module_id = ModuleId(path.as_posix())
        if not should_process_file(module_id):
            return False

        parsed = self.parser.parse_file(path)
        if parsed.has_errors or parsed.root is None:
            if self.verbose:
                print(f"RouteDepsBuilder Warning: Skipping {module_id}: {parsed.error_message}")
            return False

        static_targets: Set[ModuleId] = set()
        for specifier in static_import_specifiers(parsed.root):
            resolved = self.resolver.resolve_sync(specifier, module_id)
            if resolved:
                static_targets.add(ModuleId(clean_module_id(resolved)))
        self.context.add_static_imports(module_id, static_targets)

        dynamic_targets = await collect_dynamic_imports(
            parsed.source_text,
            module_id,
            parsed,
            self.resolver.resolve,
            enable_glob_imports=self.route_deps_config.get("enable_glob_imports", True),
            verbose=self.verbose,
        )
        if dynamic_targets:
            self.context.add_dynamic_imports(module_id, dynamic_targets)

        dep_ids = collect_ioc_dep_ids(
            parsed,
            define_deps_functions=self.route_deps_config.get("define_deps_functions", ["defineDeps"]),
            define_component_functions=self.route_deps_config.get(
                "define_component_functions", ["defineComponent", "_defineComponent"]
            ),
        )
        if dep_ids:
            self.context.add_ioc_deps(module_id, dep_ids)
        return True

    async def compile_all(self, files: Optional[Sequence[Path]] = None) -> int:
        files = list(files) if files is not None else self.discover_source_files()
        results = await asyncio.gather(*(self.compile_module(f) for f in files))
        self.context.finalize()
        compiled = sum(1 for r in results if r)
        if self.verbose:
            print(f"RouteDepsBuilder: Compiled {compiled} of {len(files)} modules")
        return compiled

    def generate_map(self, chunks: Sequence[BundleChunk]) -> RouteDepsMap:
        chunk_by_module, css_by_chunk = chunk_maps(list(chunks))
        route_module_deps = build_route_deps_from_graph(
            self.context.routes,
            self.context.dynamic_imports_by_file,
            self.context.ioc_deps_by_file,
            self.context.dep_id_to_dynamic_import,
            self.context.get_static_imports,
            excluded_namespace=self.excluded_namespace,
            verbose=self.verbose,
        )
        route_deps_map = map_modules_to_chunks(route_module_deps, chunk_by_module, css_by_chunk)

        if self.route_deps_config.get("include_static_chunks"):
            route_deps_map = expand_with_static_chunks(route_deps_map, chunks, self.verbose)
        patterns = self.route_deps_config.get("include_chunk_patterns") or []
        if patterns:
            route_deps_map = add_matching_chunks(route_deps_map, chunks, patterns, self.verbose)

        if self.verbose:
            print(f"RouteDepsBuilder: Generated map for {len(route_deps_map)} routes")
        return route_deps_map

    async def run(self, chunks: Sequence[BundleChunk]) -> RouteDepsMap:
        with self._lock:
            self.context.reset()
            self.resolver.clear_cache()
            await self.build_start()
            await self.compile_all()
            self.dirty = False
            return self.generate_map(chunks)

    def refresh_map(self, chunks: Sequence[BundleChunk]) -> RouteDepsMap:
        """Regenerates the map from the incrementally updated context and clears the dirty flag."""
        with self._lock:
            route_deps_map = self.generate_map(chunks)
            self.dirty = False
            return route_deps_map

    def load_virtual_module(self, module_id: str) -> Optional[str]:
        """Source for the virtual map module; the placeholder is replaced after the bundle is written."""
        if module_id == self.virtual_module_id or module_id == "\0" + self.virtual_module_id:
            return render_placeholder_module()
        return None

    # --- Incremental updates ---

    def _normalize_module_id(self, module_id: str) -> str:
        path = Path(clean_module_id(module_id))
        if not path.is_absolute():
            path = self.project_root / path
        return path.as_posix()

    def _is_registration_file(self, path: Path) -> bool:
        resolved = path.resolve()
        if resolved.parent == self.router_dir.resolve():
            return True
        return any(resolved == (self.project_root / f).resolve() for f in self.ioc_map_files)

    def handle_file_event(self, event_type: str, src_path: Path, dest_path: Optional[Path] = None) -> None:
        """
        Folds one file change into the collected state and marks the map dirty.

        Router and IoC registration files rerun build_start. Other modules are
        recompiled; their new imports merge with the old ones, so removed edges
        persist until the next full run. Deleted files only mark the map dirty.
        Events for the generated map module itself are ignored.
        """
        touched = [Path(src_path)] + ([Path(dest_path)] if dest_path else [])
        if self.generated_module_path and all(p.resolve() == self.generated_module_path for p in touched):
            return

        if self.verbose:
            suffix = f" -> {dest_path}" if dest_path else ""
            print(f"RouteDepsBuilder: File event '{event_type}' for {src_path}{suffix}")

        current = touched[-1]
        with self._lock:
            self.context.reopen()
            self.resolver.clear_cache()
            try:
                if any(self._is_registration_file(p) for p in touched):
                    asyncio.run(self.build_start())
                elif event_type != "deleted" and current.is_file():
                    asyncio.run(self.compile_module(current))
            finally:
                self.context.finalize()
            self.dirty = True
