from typing import Dict, Iterable, List, Optional, Sequence, Set

from src.build.exceptions import ContextFinalizedError
from src.collector.dynamic_imports import DynamicImportsCollector
from src.collector.ioc_usage import merge_ioc_deps
from src.graph.graph_structures import (
    DepIdToDynamicImport,
    DynamicImportsByFile,
    IocDepsByFile,
    ModuleId,
)
from src.specs.schemas import ParsedRoute


class BuildContext:
    """
    State accumulated over one build and handed to every stage explicitly.

    Compilation adds to the per-module maps (always by union, so a module compiled
    twice keeps everything found either time). `finalize()` ends the compile phase;
    the graph walk only reads from a finalized context. `reset()` starts a new build.
    """

    def __init__(self):
        self.routes: List[ParsedRoute] = []
        self.static_imports_in_router: Dict[str, str] = {}
        self.dep_id_to_dynamic_import: DepIdToDynamicImport = {}
        self.dynamic_imports = DynamicImportsCollector()
        self.ioc_deps_by_file: IocDepsByFile = {}
        self.static_imports_by_file: Dict[ModuleId, Set[ModuleId]] = {}
        self.finalized: bool = False

    def _check_mutable(self) -> None:
        if self.finalized:
            raise ContextFinalizedError("BuildContext is finalized; call reset() before collecting again.")

    def reset(self) -> None:
        self.routes = []
        self.static_imports_in_router = {}
        self.dep_id_to_dynamic_import = {}
        self.dynamic_imports.clear()
        self.ioc_deps_by_file = {}
        self.static_imports_by_file = {}
        self.finalized = False

    def reopen(self) -> None:
        """Allows incremental recompilation after a finalize, keeping collected data."""
        self.finalized = False

    def finalize(self) -> None:
        self.finalized = True

    def set_routes(self, routes: Sequence[ParsedRoute], static_imports: Dict[str, str]) -> None:
        self._check_mutable()
        self.routes = list(routes)
        self.static_imports_in_router = dict(static_imports)

    def set_dep_id_map(self, dep_id_to_dynamic_import: DepIdToDynamicImport) -> None:
        self._check_mutable()
        self.dep_id_to_dynamic_import = dict(dep_id_to_dynamic_import)

    def add_dynamic_imports(self, module_id: str, targets: Iterable[str]) -> None:
        self._check_mutable()
        self.dynamic_imports.add(module_id, targets)

    def add_static_imports(self, module_id: str, targets: Iterable[str]) -> None:
        self._check_mutable()
        existing = self.static_imports_by_file.setdefault(ModuleId(module_id), set())
        existing.update(ModuleId(t) for t in targets)

    def add_ioc_deps(self, module_id: str, dep_ids: Iterable[str]) -> None:
        self._check_mutable()
        merge_ioc_deps(self.ioc_deps_by_file, module_id, dep_ids)

    @property
    def dynamic_imports_by_file(self) -> DynamicImportsByFile:
        return self.dynamic_imports.get()

    def get_static_imports(self, module_id: ModuleId) -> Optional[List[ModuleId]]:
        imports = self.static_imports_by_file.get(module_id)
        if imports is None:
            return None
        return sorted(imports)
