import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from src.graph.graph_structures import DepId, DepIdToDynamicImport, ModuleId
from src.resolver.import_resolver import ResolveFn, clean_module_id

# [NAMESPACE.Name]: at the start of a registration entry
DEPS_KEY_RE = re.compile(r"\[\s*([A-Za-z_$][\w$]*)\s*\.\s*([A-Za-z_$][\w$]*)\s*\]\s*:")
DYNAMIC_IMPORT_RE = re.compile(r"""import\s*\(\s*(['"`])([^'"`]+)\1\s*\)""")

_OPENERS = "([{"
_CLOSERS = ")]}"
_QUOTES = "'\"`"


@dataclass
class DepsEntry:
    dep_id: str
    import_path: Optional[str]


def find_value_end(code: str, start_pos: int) -> int:
    """
    Index just past the value that starts at `start_pos`.

    The value ends at the first top-level comma, at a closing delimiter that would
    take the depth below zero, at the next `[A.B]:` key at depth zero, or at the end
    of the text. Delimiters inside quoted strings and template literals are ignored.
    """
    depth = 0
    in_string: Optional[str] = None
    i = start_pos
    length = len(code)
    while i < length:
        char = code[i]

        if in_string is not None:
            if char == "\\":
                i += 2
                continue
            if char == in_string:
                in_string = None
            i += 1
            continue

        if char in _QUOTES:
            in_string = char
        elif depth == 0 and char == "[" and DEPS_KEY_RE.match(code, i):
            return i
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth < 0:
                return i
        elif char == "," and depth == 0:
            return i
        i += 1
    return length


def blank_comments(code: str) -> str:
    """
    Replaces `//` and `/* */` comments with spaces, keeping offsets and newlines,
    so commented-out registrations are not picked up. Quoted strings and template
    literals are copied as they are.
    """
    out = list(code)
    in_string: Optional[str] = None
    i = 0
    length = len(code)
    while i < length:
        char = code[i]
        if in_string is not None:
            if char == "\\":
                i += 2
                continue
            if char == in_string:
                in_string = None
            i += 1
            continue

        if char in _QUOTES:
            in_string = char
        elif code.startswith("//", i):
            end = code.find("\n", i)
            end = length if end == -1 else end
            out[i:end] = " " * (end - i)
            i = end
            continue
        elif code.startswith("/*", i):
            end = code.find("*/", i + 2)
            end = length if end == -1 else end + 2
            out[i:end] = [c if c == "\n" else " " for c in code[i:end]]
            i = end
            continue
        i += 1
    return "".join(out)


def extract_deps_entries(code: str) -> List[DepsEntry]:
    """
    Finds `[A.B]: value` registrations. Entries whose value contains an import()
    with a literal specifier carry that specifier; the rest are static and have
    import_path None. Comments are ignored.
    """
    code = blank_comments(code)
    entries: List[DepsEntry] = []
    for key_match in DEPS_KEY_RE.finditer(code):
        dep_id = f"{key_match.group(1)}.{key_match.group(2)}"
        value_start = key_match.end()
        value = code[value_start:find_value_end(code, value_start)]
        import_match = DYNAMIC_IMPORT_RE.search(value)
        entries.append(DepsEntry(dep_id=dep_id, import_path=import_match.group(2) if import_match else None))
    return entries


async def _resolve_entry(resolve: ResolveFn, entry: DepsEntry, importer: str, verbose: bool) -> Optional[str]:
    try:
        return await resolve(entry.import_path, importer)
    except Exception as e:
        if verbose:
            print(f"IocMapParser Warning: Failed to resolve {entry.import_path} from {importer}: {e}")
        return None


async def parse_ioc_maps(ioc_map_files: Sequence[Union[str, Path]],
                         root_dir: Union[str, Path],
                         resolve: ResolveFn,
                         verbose: bool = False) -> DepIdToDynamicImport:
    """
    Builds the DepId -> lazily loaded module map from IoC registration files.

    Files are processed in the given order and a later file overrides an earlier
    one for the same DepId. Unreadable files and unresolvable import paths are
    skipped.
    """
    result: DepIdToDynamicImport = {}
    root = Path(root_dir)

    for file_path in ioc_map_files:
        absolute_path = (root / file_path).resolve()
        try:
            code = absolute_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            if verbose:
                print(f"IocMapParser Warning: Failed to read IoC map file {absolute_path}: {e}")
            continue

        dynamic_entries = [entry for entry in extract_deps_entries(code) if entry.import_path]
        if verbose and dynamic_entries:
            print(f"IocMapParser: Found {len(dynamic_entries)} dynamic deps entries in {file_path}")

        importer = absolute_path.as_posix()
        resolved_ids = await asyncio.gather(
            *(_resolve_entry(resolve, entry, importer, verbose) for entry in dynamic_entries)
        )
        # Apply in source order so a repeated key within one file is also last-wins.
        for entry, resolved in zip(dynamic_entries, resolved_ids):
            if resolved:
                result[DepId(entry.dep_id)] = ModuleId(clean_module_id(resolved))
            elif verbose:
                print(f"IocMapParser: Could not resolve {entry.import_path} for {entry.dep_id}")

    if verbose:
        print(f"IocMapParser: Parsed IoC maps, {len(result)} dynamic deps")
    return result
