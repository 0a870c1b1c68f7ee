from .bundle import chunk_maps, load_bundle_description
from .chunk_mapper import add_matching_chunks, expand_with_static_chunks, map_modules_to_chunks

__all__ = [
    "chunk_maps",
    "load_bundle_description",
    "add_matching_chunks",
    "expand_with_static_chunks",
    "map_modules_to_chunks",
]
