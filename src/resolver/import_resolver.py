import os
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from src.graph.graph_structures import ModuleId

DEFAULT_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".vue", ".json"]

# resolve(specifier, importer_id) -> module id or None
ResolveFn = Callable[[str, str], Awaitable[Optional[str]]]


def clean_module_id(module_id: str) -> str:
    """Drops a `?query` variant suffix, e.g. `App.vue?vue&type=script` -> `App.vue`."""
    return module_id.split("?", 1)[0]


def _to_module_id(path: Path) -> ModuleId:
    return ModuleId(Path(os.path.normpath(str(path))).as_posix())


def _package_name(specifier: str) -> str:
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


class ImportResolver:
    """
    Resolves import specifiers to canonical module ids the way a Vite-style dev
    server would: aliases, relative paths, root-relative paths, extension and
    index probing. Bare package specifiers resolve into node_modules when the
    package directory exists.
    """

    def __init__(self,
                 project_root: Union[str, Path],
                 aliases: Optional[Dict[str, str]] = None,
                 extensions: Optional[Sequence[str]] = None,
                 excluded_namespace: str = "node_modules",
                 verbose: bool = False):
        self.project_root = Path(project_root).resolve()
        self.aliases: Dict[str, Path] = {}
        for key, target in (aliases or {}).items():
            target_path = Path(target)
            if not target_path.is_absolute():
                target_path = self.project_root / target_path
            self.aliases[key] = target_path
        self.extensions: List[str] = list(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
        self.excluded_namespace = excluded_namespace
        self.verbose = verbose
        self._cache: Dict[Tuple[str, str], Optional[ModuleId]] = {}

    async def resolve(self, specifier: str, importer: str) -> Optional[ModuleId]:
        return self.resolve_sync(specifier, importer)

    def resolve_sync(self, specifier: str, importer: str) -> Optional[ModuleId]:
        importer_dir = str(Path(clean_module_id(importer)).parent)
        cache_key = (specifier, importer_dir)
        if cache_key in self._cache:
            return self._cache[cache_key]
        resolved = self._resolve_uncached(specifier, Path(importer_dir))
        self._cache[cache_key] = resolved
        if resolved is None and self.verbose:
            print(f"ImportResolver: Could not resolve '{specifier}' from {importer}")
        return resolved

    def clear_cache(self) -> None:
        self._cache.clear()

    def _resolve_uncached(self, specifier: str, importer_dir: Path) -> Optional[ModuleId]:
        spec = specifier.split("?", 1)[0].split("#", 1)[0]
        if not spec or spec.startswith("\0") or spec.startswith("virtual:"):
            return None

        for candidate in self._candidate_bases(spec, importer_dir):
            found = self._probe(candidate)
            if found is not None:
                return _to_module_id(found)

        if not spec.startswith((".", "/")) and not self._matches_alias(spec):
            package_dir = self.project_root / self.excluded_namespace / _package_name(spec)
            if package_dir.is_dir():
                return _to_module_id(self.project_root / self.excluded_namespace / spec)
        return None

    def _matches_alias(self, spec: str) -> bool:
        return any(spec == key or spec.startswith(key.rstrip("/") + "/") for key in self.aliases)

    def _candidate_bases(self, spec: str, importer_dir: Path) -> List[Path]:
        # Longest alias key first so '@ui' wins over '@'.
        for key in sorted(self.aliases, key=len, reverse=True):
            prefix = key.rstrip("/")
            if spec == prefix:
                return [self.aliases[key]]
            if spec.startswith(prefix + "/"):
                return [self.aliases[key] / spec[len(prefix) + 1:]]
        if spec.startswith("./") or spec.startswith("../") or spec in (".", ".."):
            return [importer_dir / spec]
        if spec.startswith("/"):
            absolute = Path(spec)
            return [absolute, self.project_root / spec.lstrip("/")]
        return []

    def _probe(self, base: Path) -> Optional[Path]:
        if base.is_file():
            return base
        for ext in self.extensions:
            with_ext = base.with_name(base.name + ext)
            if with_ext.is_file():
                return with_ext
        if base.is_dir():
            for ext in self.extensions:
                index_file = base / f"index{ext}"
                if index_file.is_file():
                    return index_file
        return None
