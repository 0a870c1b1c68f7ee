import json
import unittest

from src.chunks.chunk_mapper import (
    add_matching_chunks,
    expand_with_static_chunks,
    map_modules_to_chunks,
    match_chunk_patterns,
)
from src.specs.schemas import BundleChunk


class TestMapModulesToChunks(unittest.TestCase):

    def test_about_route_gets_chunks_and_css_sorted(self):
        route_module_deps = {"/about": {"/app/About.vue", "/app/Modal.vue", "/app/First.ts"}}
        chunk_by_module = {
            "/app/About.vue": "assets/About-x1.js",
            "/app/Modal.vue": "assets/Modal-m2.js",
            "/app/First.ts": "assets/First-f3.js",
        }
        css_by_chunk = {"assets/About-x1.js": {"assets/About-x1.css"}}

        result = map_modules_to_chunks(route_module_deps, chunk_by_module, css_by_chunk)

        self.assertEqual(result, {"/about": [
            "assets/About-x1.css",
            "assets/About-x1.js",
            "assets/First-f3.js",
            "assets/Modal-m2.js",
        ]})

    def test_inlined_modules_are_skipped(self):
        route_module_deps = {"/": {"/app/Home.vue", "/app/inlined.ts"}}
        chunk_by_module = {"/app/Home.vue": "assets/index.js"}

        result = map_modules_to_chunks(route_module_deps, chunk_by_module, {})

        self.assertEqual(result, {"/": ["assets/index.js"]})

    def test_modules_sharing_a_chunk_are_deduplicated(self):
        route_module_deps = {"/x": {"/app/a.ts", "/app/b.ts"}}
        chunk_by_module = {"/app/a.ts": "assets/shared.js", "/app/b.ts": "assets/shared.js"}
        css_by_chunk = {"assets/shared.js": {"assets/shared.css"}}

        result = map_modules_to_chunks(route_module_deps, chunk_by_module, css_by_chunk)

        self.assertEqual(result, {"/x": ["assets/shared.css", "assets/shared.js"]})

    def test_output_independent_of_module_order(self):
        modules = ["/app/Modal.vue", "/app/About.vue", "/app/inlined.ts", "/app/First.ts", "/app/Shared.ts"]
        chunk_by_module = {
            "/app/About.vue": "assets/About-x1.js",
            "/app/Modal.vue": "assets/Modal-m2.js",
            "/app/First.ts": "assets/First-f3.js",
            "/app/Shared.ts": "assets/About-x1.js",
        }
        css_by_chunk = {
            "assets/About-x1.js": {"assets/About-x1.css", "assets/base.css"},
            "assets/Modal-m2.js": {"assets/base.css"},
        }

        forward = map_modules_to_chunks({"/about": modules}, chunk_by_module, css_by_chunk)
        backward = map_modules_to_chunks({"/about": list(reversed(modules))}, chunk_by_module, css_by_chunk)

        self.assertEqual(json.dumps(forward), json.dumps(backward))
        self.assertEqual(forward["/about"], [
            "assets/About-x1.css",
            "assets/About-x1.js",
            "assets/First-f3.js",
            "assets/Modal-m2.js",
            "assets/base.css",
        ])

    def test_route_with_no_modules_maps_to_empty_list(self):
        self.assertEqual(map_modules_to_chunks({"/lost": set()}, {}, {}), {"/lost": []})


class TestStaticChunkExpansion(unittest.TestCase):

    def setUp(self):
        self.chunks = [
            BundleChunk(file_name="assets/index.js", is_entry=True, imports=["assets/vendor.js"]),
            BundleChunk(file_name="assets/About.js", imports=["assets/shared.js", "assets/index.js"]),
            BundleChunk(file_name="assets/shared.js", imports=["assets/utils.js"]),
            BundleChunk(file_name="assets/utils.js"),
            BundleChunk(file_name="assets/vendor.js"),
            BundleChunk(file_name="assets/loader-runtime.js"),
        ]

    def test_transitive_static_imports_are_added_without_main_entry(self):
        route_map = {"/about": ["assets/About.js"], "/": ["assets/index.js"]}

        expanded = expand_with_static_chunks(route_map, self.chunks)

        self.assertEqual(expanded["/about"], ["assets/About.js", "assets/shared.js", "assets/utils.js"])
        self.assertEqual(expanded["/"], [])

    def test_match_chunk_patterns(self):
        self.assertEqual(match_chunk_patterns(self.chunks, ["loader-*"]), ["assets/loader-runtime.js"])
        self.assertEqual(match_chunk_patterns(self.chunks, ["assets/u*.js"]), ["assets/utils.js"])

    def test_matching_chunks_are_added_only_to_non_empty_routes(self):
        route_map = {"/about": ["assets/About.js"], "/lost": []}

        result = add_matching_chunks(route_map, self.chunks, ["loader-*"])

        self.assertEqual(result["/about"], ["assets/About.js", "assets/loader-runtime.js"])
        self.assertEqual(result["/lost"], [])


if __name__ == '__main__':
    unittest.main()
