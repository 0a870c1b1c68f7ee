import collections
import fnmatch
from typing import Dict, List, Mapping, Optional, Sequence, Set

from src.graph.graph_structures import ChunkByModule, CssByChunk, ModuleId, RouteDepsMap
from src.specs.schemas import BundleChunk


def map_modules_to_chunks(route_module_deps: Mapping[str, Set[ModuleId]],
                          chunk_by_module: ChunkByModule,
                          css_by_chunk: CssByChunk) -> RouteDepsMap:
    """
    Route -> sorted chunk and CSS file names.

    Modules with no chunk of their own (inlined into another chunk) are skipped.
    Every resolved chunk also brings in the CSS assets it imports.
    """
    result: RouteDepsMap = {}
    for route_path, module_ids in route_module_deps.items():
        files: Set[str] = set()
        for module_id in module_ids:
            chunk_file_name = chunk_by_module.get(module_id)
            if not chunk_file_name:
                continue
            files.add(chunk_file_name)
            files.update(css_by_chunk.get(chunk_file_name, ()))
        result[route_path] = sorted(files)
    return result


def _main_entry_chunk(chunks: Sequence[BundleChunk]) -> Optional[str]:
    for chunk in chunks:
        if chunk.is_entry:
            return chunk.file_name
    return None


def expand_with_static_chunks(route_deps_map: RouteDepsMap,
                              chunks: Sequence[BundleChunk],
                              verbose: bool = False) -> RouteDepsMap:
    """
    Adds every chunk statically imported (transitively) by a route's chunks.

    The main entry chunk is never traversed or included: it imports everything the
    app can load and is already on the page.
    """
    main_entry = _main_entry_chunk(chunks)
    chunk_imports: Dict[str, List[str]] = {chunk.file_name: list(chunk.imports) for chunk in chunks}
    expanded: RouteDepsMap = {}

    for route_path, route_chunks in route_deps_map.items():
        all_chunks = set(route_chunks)
        queue = collections.deque(route_chunks)
        while queue:
            chunk_file_name = queue.popleft()
            if chunk_file_name == main_entry:
                continue
            for imported_chunk in chunk_imports.get(chunk_file_name, ()):
                if imported_chunk == main_entry:
                    continue
                if imported_chunk not in all_chunks:
                    all_chunks.add(imported_chunk)
                    queue.append(imported_chunk)
        if main_entry:
            all_chunks.discard(main_entry)
        expanded[route_path] = sorted(all_chunks)

        if verbose and len(all_chunks) != len(route_chunks):
            print(f"ChunkMapper: Route {route_path}: {len(route_chunks)} -> {len(all_chunks)} chunks")

    return expanded


def match_chunk_patterns(chunks: Sequence[BundleChunk], patterns: Sequence[str]) -> List[str]:
    """Chunk file names whose basename or full name matches any glob pattern."""
    matching: List[str] = []
    for chunk in chunks:
        file_name = chunk.file_name
        base_name = file_name.rsplit("/", 1)[-1]
        if any(fnmatch.fnmatchcase(base_name, p) or fnmatch.fnmatchcase(file_name, p) for p in patterns):
            matching.append(file_name)
    return matching


def add_matching_chunks(route_deps_map: RouteDepsMap,
                        chunks: Sequence[BundleChunk],
                        patterns: Sequence[str],
                        verbose: bool = False) -> RouteDepsMap:
    """Appends pattern-matched chunks (e.g. runtime loaders) to every non-empty route."""
    matching = match_chunk_patterns(chunks, patterns)
    if verbose and matching:
        print(f"ChunkMapper: Chunks matching patterns {', '.join(patterns)}: {', '.join(matching)}")

    result: RouteDepsMap = {}
    for route_path, route_chunks in route_deps_map.items():
        if route_chunks:
            result[route_path] = sorted(set(route_chunks).union(matching))
        else:
            result[route_path] = list(route_chunks)
    return result
