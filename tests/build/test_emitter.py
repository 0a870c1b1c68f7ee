import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from src.build.emitter import (
    PLACEHOLDER,
    inject_route_deps_map,
    patch_emitted_chunks,
    render_placeholder_module,
    write_route_deps_asset,
    write_route_deps_module,
)

ROUTE_MAP = {"/": ["assets/index.js"], "/about": ["assets/About.css", "assets/About.js"]}


class TestEmitter(unittest.TestCase):

    def setUp(self):
        self.out_dir = Path(tempfile.mkdtemp(prefix="emitter_out_"))

    def tearDown(self):
        shutil.rmtree(self.out_dir)

    def test_placeholder_module_is_replaced(self):
        code = "const m = " + render_placeholder_module().replace("export default ", "")
        injected = inject_route_deps_map(code, ROUTE_MAP)
        self.assertNotIn(PLACEHOLDER, injected)
        self.assertEqual(json.loads(injected[len("const m = "):].rstrip(";")), ROUTE_MAP)

    def test_write_asset(self):
        path = write_route_deps_asset(ROUTE_MAP, self.out_dir / "nested")
        self.assertEqual(path.name, "route-deps-map.json")
        self.assertEqual(json.loads(path.read_text(encoding="utf-8")), ROUTE_MAP)

    def test_write_module(self):
        path = write_route_deps_module(ROUTE_MAP, self.out_dir / "generated" / "routeDeps.ts")
        content = path.read_text(encoding="utf-8")
        self.assertTrue(content.startswith("export default {"))
        self.assertIn('"/about"', content)

    def test_unchanged_module_is_not_rewritten(self):
        module_path = self.out_dir / "src" / "routeDeps.ts"
        write_route_deps_module(ROUTE_MAP, module_path)
        with patch("builtins.open", side_effect=AssertionError("rewrote unchanged module")):
            self.assertEqual(write_route_deps_module(ROUTE_MAP, module_path), module_path)

        write_route_deps_module({"/": ["assets/index.js"]}, module_path)
        self.assertNotIn('"/about"', module_path.read_text(encoding="utf-8"))

    def test_patch_emitted_chunks_only_touches_chunks_with_placeholder(self):
        assets = self.out_dir / "assets"
        assets.mkdir()
        (assets / "index.js").write_text(f'const routeDeps = "{PLACEHOLDER}"; console.log(routeDeps);')
        (assets / "About.js").write_text("export const x = 1;")

        patched = patch_emitted_chunks(self.out_dir, ROUTE_MAP)

        self.assertEqual(patched, [assets / "index.js"])
        self.assertIn('"/about": ["assets/About.css", "assets/About.js"]', (assets / "index.js").read_text())
        self.assertEqual((assets / "About.js").read_text(), "export const x = 1;")

    def test_patch_missing_out_dir(self):
        self.assertEqual(patch_emitted_chunks(self.out_dir / "missing", ROUTE_MAP), [])


if __name__ == '__main__':
    unittest.main()
