from .ioc_map_parser import DepsEntry, extract_deps_entries, find_value_end, parse_ioc_maps

__all__ = ["DepsEntry", "extract_deps_entries", "find_value_end", "parse_ioc_maps"]
