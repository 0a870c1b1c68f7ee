import json
from pathlib import Path
from typing import List, Union

from src.graph.graph_structures import RouteDepsMap

PLACEHOLDER = "__ROUTE_DEPS_MAP_PLACEHOLDER__"
DEFAULT_ASSET_FILE_NAME = "route-deps-map.json"


def render_placeholder_module() -> str:
    """Body of the virtual module before the bundle is written; replaced by inject_route_deps_map."""
    return f'export default "{PLACEHOLDER}";'


def render_route_deps_module(route_deps_map: RouteDepsMap) -> str:
    return f"export default {json.dumps(route_deps_map, indent=2)};\n"


def inject_route_deps_map(code: str, route_deps_map: RouteDepsMap) -> str:
    return code.replace(f'"{PLACEHOLDER}"', json.dumps(route_deps_map))


def write_route_deps_asset(route_deps_map: RouteDepsMap,
                           out_dir: Union[str, Path],
                           file_name: str = DEFAULT_ASSET_FILE_NAME) -> Path:
    out_path = Path(out_dir) / file_name
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(json.dumps(route_deps_map, indent=2))
    return out_path


def write_route_deps_module(route_deps_map: RouteDepsMap, module_path: Union[str, Path]) -> Path:
    """Writes the generated module. An unchanged file is left untouched so watchers see no event."""
    module_path = Path(module_path)
    content = render_route_deps_module(route_deps_map)
    if module_path.is_file() and module_path.read_text(encoding="utf-8") == content:
        return module_path
    module_path.parent.mkdir(parents=True, exist_ok=True)
    with open(module_path, "w", encoding="utf-8") as f:
        f.write(content)
    return module_path


def patch_emitted_chunks(out_dir: Union[str, Path], route_deps_map: RouteDepsMap,
                         verbose: bool = False) -> List[Path]:
    """Replaces the quoted placeholder in every emitted .js chunk; returns the patched files."""
    patched: List[Path] = []
    root = Path(out_dir)
    if not root.is_dir():
        return patched
    for js_file in sorted(root.rglob("*.js")):
        try:
            code = js_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            if verbose:
                print(f"Emitter Warning: Could not read {js_file}: {e}")
            continue
        if PLACEHOLDER not in code:
            continue
        js_file.write_text(inject_route_deps_map(code, route_deps_map), encoding="utf-8")
        patched.append(js_file)
        if verbose:
            print(f"Emitter: Replaced placeholder in {js_file}")
    return patched
