import json
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import ValidationError

from src.build.exceptions import BundleDescriptionError
from src.graph.graph_structures import ChunkByModule, CssByChunk, ModuleId
from src.resolver.import_resolver import clean_module_id
from src.specs.schemas import BundleChunk


def _module_id_for(key: str, project_root: Path) -> ModuleId:
    path = Path(clean_module_id(key))
    if not path.is_absolute():
        path = project_root / path
    return ModuleId(path.as_posix())


def chunks_from_vite_manifest(manifest: Dict[str, Any], project_root: Union[str, Path]) -> List[BundleChunk]:
    """
    Converts a Vite build manifest (`.vite/manifest.json`) into chunk descriptions.

    Manifest keys are root-relative source paths; each entry names the emitted
    `file`, its `css` and the manifest keys it `imports`. Entries that emit only
    CSS are skipped, and several keys pointing at one file are folded together.
    """
    root = Path(project_root).resolve()
    key_to_file = {key: entry.get("file") for key, entry in manifest.items() if isinstance(entry, dict)}
    by_file: Dict[str, BundleChunk] = {}

    for key, entry in manifest.items():
        if not isinstance(entry, dict):
            continue
        file_name = entry.get("file")
        if not file_name or file_name.endswith(".css"):
            continue
        chunk = by_file.get(file_name)
        if chunk is None:
            chunk = BundleChunk(file_name=file_name)
            by_file[file_name] = chunk
        # Keys starting with "_" are shared chunks with no source module.
        if entry.get("src") or not key.startswith("_"):
            chunk.modules.append(_module_id_for(entry.get("src") or key, root))
        for css_file in entry.get("css", []):
            if css_file not in chunk.css:
                chunk.css.append(css_file)
        for imported_key in entry.get("imports", []):
            imported_file = key_to_file.get(imported_key)
            if imported_file and imported_file not in chunk.imports:
                chunk.imports.append(imported_file)
        for imported_key in entry.get("dynamicImports", []):
            imported_file = key_to_file.get(imported_key)
            if imported_file and imported_file not in chunk.dynamic_imports:
                chunk.dynamic_imports.append(imported_file)
        chunk.is_entry = chunk.is_entry or bool(entry.get("isEntry"))
        chunk.is_dynamic_entry = chunk.is_dynamic_entry or bool(entry.get("isDynamicEntry"))

    return list(by_file.values())


def chunks_from_chunk_list(data: Dict[str, Any], project_root: Union[str, Path]) -> List[BundleChunk]:
    """Reads a rollup-style `{"chunks": [{"fileName", "modules", "css", "imports", "isEntry"}]}` document."""
    root = Path(project_root).resolve()
    chunks: List[BundleChunk] = []
    for raw_chunk in data.get("chunks", []):
        try:
            chunk = BundleChunk.model_validate(raw_chunk)
        except ValidationError as e:
            raise BundleDescriptionError(f"Invalid chunk entry {raw_chunk!r}: {e}") from e
        chunk.modules = [_module_id_for(m, root) for m in chunk.modules]
        chunks.append(chunk)
    return chunks


def load_bundle_description(path: Union[str, Path], project_root: Union[str, Path]) -> List[BundleChunk]:
    """
    Loads emitted chunk information from a Vite manifest or a rollup-style chunk list.

    Raises:
        BundleDescriptionError: the file is missing, is not JSON, or matches neither format.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise BundleDescriptionError(f"Could not read bundle description {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("chunks"), list):
        return chunks_from_chunk_list(data, project_root)
    if isinstance(data, dict) and all(isinstance(v, dict) and "file" in v for v in data.values()):
        return chunks_from_vite_manifest(data, project_root)
    raise BundleDescriptionError(f"Unrecognised bundle description format in {path}")


def chunk_maps(chunks: List[BundleChunk]) -> Tuple[ChunkByModule, CssByChunk]:
    chunk_by_module: ChunkByModule = {}
    css_by_chunk: CssByChunk = {}
    for chunk in chunks:
        for module_id in chunk.modules:
            chunk_by_module[ModuleId(module_id)] = chunk.file_name
        if chunk.css:
            css_by_chunk[chunk.file_name] = set(chunk.css)
    return chunk_by_module, css_by_chunk
