import unittest

from src.build.build_context import BuildContext
from src.build.exceptions import ContextFinalizedError, RouteDepsError
from src.specs.schemas import ParsedRoute


class TestBuildContext(unittest.TestCase):

    def setUp(self):
        self.context = BuildContext()

    def test_collects_and_merges(self):
        self.context.add_dynamic_imports("/a/x.ts", ["/a/y.ts"])
        self.context.add_dynamic_imports("/a/x.ts", ["/a/z.ts"])
        self.context.add_static_imports("/a/x.ts", ["/a/s2.ts", "/a/s1.ts"])
        self.context.add_ioc_deps("/a/x.ts", ["DEPS.A"])
        self.context.add_ioc_deps("/a/x.ts", ["DEPS.A", "DEPS.B"])

        self.assertEqual(self.context.dynamic_imports_by_file, {"/a/x.ts": {"/a/y.ts", "/a/z.ts"}})
        self.assertEqual(self.context.get_static_imports("/a/x.ts"), ["/a/s1.ts", "/a/s2.ts"])
        self.assertIsNone(self.context.get_static_imports("/a/unknown.ts"))
        self.assertEqual(self.context.ioc_deps_by_file, {"/a/x.ts": ["DEPS.A", "DEPS.B"]})

    def test_finalized_context_rejects_mutation(self):
        self.context.finalize()
        with self.assertRaises(ContextFinalizedError):
            self.context.add_dynamic_imports("/a/x.ts", ["/a/y.ts"])
        with self.assertRaises(RouteDepsError):
            self.context.set_dep_id_map({"DEPS.A": "/a/a.ts"})

    def test_reopen_keeps_data(self):
        self.context.add_static_imports("/a/x.ts", ["/a/y.ts"])
        self.context.finalize()
        self.context.reopen()
        self.context.add_static_imports("/a/x.ts", ["/a/z.ts"])
        self.assertEqual(self.context.get_static_imports("/a/x.ts"), ["/a/y.ts", "/a/z.ts"])

    def test_reset_clears_everything(self):
        self.context.set_routes([ParsedRoute(path="/", full_path="/", entry_module_id="/a/Home.vue")], {"Home": "/a/Home.vue"})
        self.context.set_dep_id_map({"DEPS.A": "/a/a.ts"})
        self.context.add_dynamic_imports("/a/x.ts", ["/a/y.ts"])
        self.context.finalize()

        self.context.reset()

        self.assertFalse(self.context.finalized)
        self.assertEqual(self.context.routes, [])
        self.assertEqual(self.context.static_imports_in_router, {})
        self.assertEqual(self.context.dep_id_to_dynamic_import, {})
        self.assertEqual(self.context.dynamic_imports_by_file, {})


if __name__ == '__main__':
    unittest.main()
