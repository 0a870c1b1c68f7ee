# src/graph/graph_structures.py
from typing import Callable, Dict, List, NewType, Optional, Set, Sequence

# Canonical resolved module path (absolute, POSIX separators, no ?query suffix).
ModuleId = NewType('ModuleId', str)

# Symbolic IoC identifier, e.g. "DEPS.First".
DepId = NewType('DepId', str)

# Module -> modules it loads through import() calls.
DynamicImportsByFile = Dict[ModuleId, Set[ModuleId]]

# Module -> DepIds it asks the IoC container for.
IocDepsByFile = Dict[ModuleId, List[DepId]]

# DepId -> module loaded lazily when the DepId is requested.
# Static registrations (plain class references) never appear here.
DepIdToDynamicImport = Dict[DepId, ModuleId]

# Module -> chunk file name that contains it. Many modules can share a chunk.
ChunkByModule = Dict[ModuleId, str]

# Chunk file name -> CSS assets imported by that chunk.
CssByChunk = Dict[str, Set[str]]

# Route full path -> sorted chunk/CSS file names. The externally visible artifact.
RouteDepsMap = Dict[str, List[str]]

# Route full path -> module ids that must be loaded for the route.
RouteModuleDeps = Dict[str, Set[ModuleId]]

# Static import lookup supplied by the module graph; None when the module is unknown.
StaticImportsLookup = Callable[[ModuleId], Optional[Sequence[ModuleId]]]
