import asyncio
import shutil
import tempfile
import unittest
from pathlib import Path

from src.resolver.import_resolver import ImportResolver, clean_module_id


class TestImportResolver(unittest.TestCase):

    def setUp(self):
        self.root = Path(tempfile.mkdtemp(prefix="resolver_proj_")).resolve()
        files = [
            "src/main.ts",
            "src/ui/views/About.vue",
            "src/ui/components/Button.tsx",
            "src/services/api/index.ts",
            "src/utils.js",
            "packages/shared/format.ts",
            "node_modules/lodash-es/package.json",
            "node_modules/@scope/pkg/package.json",
        ]
        for rel in files:
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        self.importer = (self.root / "src" / "main.ts").as_posix()
        self.resolver = ImportResolver(self.root, aliases={"@": "src", "@shared": "packages/shared"})

    def tearDown(self):
        shutil.rmtree(self.root)

    def _id(self, rel: str) -> str:
        return (self.root / rel).as_posix()

    def test_relative_with_extension_probing(self):
        self.assertEqual(self.resolver.resolve_sync("./utils", self.importer), self._id("src/utils.js"))
        self.assertEqual(
            self.resolver.resolve_sync("./ui/views/About.vue", self.importer), self._id("src/ui/views/About.vue")
        )

    def test_directory_index(self):
        self.assertEqual(self.resolver.resolve_sync("./services/api", self.importer), self._id("src/services/api/index.ts"))

    def test_parent_relative_is_normalized(self):
        importer = self._id("src/ui/views/About.vue")
        self.assertEqual(self.resolver.resolve_sync("../components/Button", importer), self._id("src/ui/components/Button.tsx"))

    def test_aliases_longest_key_wins(self):
        self.assertEqual(self.resolver.resolve_sync("@/ui/views/About.vue", self.importer), self._id("src/ui/views/About.vue"))
        self.assertEqual(self.resolver.resolve_sync("@shared/format", self.importer), self._id("packages/shared/format.ts"))

    def test_root_relative_path(self):
        self.assertEqual(self.resolver.resolve_sync("/src/utils", self.importer), self._id("src/utils.js"))

    def test_bare_specifiers_resolve_into_node_modules(self):
        self.assertEqual(self.resolver.resolve_sync("lodash-es", self.importer), self._id("node_modules/lodash-es"))
        self.assertEqual(
            self.resolver.resolve_sync("@scope/pkg/sub", self.importer), self._id("node_modules/@scope/pkg/sub")
        )
        self.assertIsNone(self.resolver.resolve_sync("not-installed", self.importer))

    def test_unresolvable_and_virtual_ids(self):
        self.assertIsNone(self.resolver.resolve_sync("./missing", self.importer))
        self.assertIsNone(self.resolver.resolve_sync("virtual:route-deps-map", self.importer))

    def test_query_suffixes_are_ignored(self):
        self.assertEqual(
            self.resolver.resolve_sync("./ui/views/About.vue?vue&type=style", self.importer + "?vue"),
            self._id("src/ui/views/About.vue"),
        )

    def test_async_resolve_matches_sync(self):
        result = asyncio.run(self.resolver.resolve("./utils", self.importer))
        self.assertEqual(result, self._id("src/utils.js"))

    def test_results_are_cached_until_cleared(self):
        self.assertIsNone(self.resolver.resolve_sync("./late", self.importer))
        (self.root / "src" / "late.ts").write_text("")
        self.assertIsNone(self.resolver.resolve_sync("./late", self.importer))
        self.resolver.clear_cache()
        self.assertEqual(self.resolver.resolve_sync("./late", self.importer), self._id("src/late.ts"))

    def test_clean_module_id(self):
        self.assertEqual(clean_module_id("/a/App.vue?vue&type=script"), "/a/App.vue")
        self.assertEqual(clean_module_id("/a/b.ts"), "/a/b.ts")


if __name__ == '__main__':
    unittest.main()
