import json
import shutil
import tempfile
import unittest
from pathlib import Path

from src.collector.ioc_usage import (
    collect_ioc_dep_ids,
    load_ioc_deps_file,
    local_define_deps_names,
    merge_ioc_deps,
)
from src.parsing.js_parser import JsSourceParser


class TestCollectIocDepIds(unittest.TestCase):

    def setUp(self):
        self.parser = JsSourceParser()

    def test_define_deps_object_form(self):
        parsed = self.parser.parse("const deps = defineDeps({ logger: DEPS.Logger, api: DEPS.Api });")
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.Logger", "DEPS.Api"])

    def test_define_deps_array_form(self):
        parsed = self.parser.parse("const [first] = defineDeps([DEPS.First, DEPS.Second]);")
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.First", "DEPS.Second"])

    def test_define_component_deps_option(self):
        source = """
        export default defineComponent({
          name: 'About',
          deps: { store: DEPS.Store },
          setup() { return {}; },
        });
        """
        parsed = self.parser.parse(source)
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.Store"])

    def test_compiled_define_component_name(self):
        parsed = self.parser.parse("export default /*#__PURE__*/_defineComponent({ deps: [DEPS.A] });", "javascript")
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.A"])

    def test_duplicates_keep_first_seen_order(self):
        source = "defineDeps([DEPS.B, DEPS.A]); defineDeps({ again: DEPS.B, c: DEPS.C });"
        parsed = self.parser.parse(source)
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.B", "DEPS.A", "DEPS.C"])

    def test_custom_function_names(self):
        parsed = self.parser.parse("useDeps([DEPS.X]); defineDeps([DEPS.Y]);")
        self.assertEqual(collect_ioc_dep_ids(parsed, define_deps_functions=["useDeps"]), ["DEPS.X"])

    def test_define_component_deps_from_top_level_const(self):
        source = """
        const myDeps = { service1: DEPS.S1, service2: DEPS.S2 };
        export default defineComponent({
          deps: myDeps,
          setup(props, ctx) { const { deps } = ctx; },
        });
        """
        parsed = self.parser.parse(source)
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.S1", "DEPS.S2"])

    def test_define_component_shorthand_deps(self):
        source = "const deps = [DEPS.DateTime, DEPS.MoviesStore];\nexport default defineComponent({ deps });"
        parsed = self.parser.parse(source)
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.DateTime", "DEPS.MoviesStore"])

    def test_define_deps_imported_under_alias(self):
        source = "import { defineDeps as dd } from './defineComponent';\nconst { third } = dd({ third: DEPS.Third });"
        parsed = self.parser.parse(source)
        self.assertEqual(local_define_deps_names(parsed.root), {"defineDeps", "dd"})
        self.assertEqual(collect_ioc_dep_ids(parsed), ["DEPS.Third"])

    def test_shorthand_deps_without_matching_const(self):
        parsed = self.parser.parse("export default defineComponent({ deps, setup() {} });")
        self.assertEqual(collect_ioc_dep_ids(parsed), [])

    def test_module_without_usages(self):
        parsed = self.parser.parse("export const x = compute({ deps: [DEPS.Z] });")
        self.assertEqual(collect_ioc_dep_ids(parsed), [])


class TestMergeAndLoadIocDeps(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = Path(tempfile.mkdtemp(prefix="ioc_usage_"))

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_merge_unions_without_duplicates(self):
        target = {}
        merge_ioc_deps(target, "/app/a.ts", ["DEPS.A", "DEPS.B"])
        merge_ioc_deps(target, "/app/a.ts", ["DEPS.B", "DEPS.C"])
        self.assertEqual(target, {"/app/a.ts": ["DEPS.A", "DEPS.B", "DEPS.C"]})

    def test_load_valid_file(self):
        path = self.tmp_dir / "ioc-deps.json"
        path.write_text(json.dumps({"src/a.ts": ["DEPS.A", "DEPS.A"], "src/b.ts": "not-a-list"}))
        self.assertEqual(load_ioc_deps_file(path), {"src/a.ts": ["DEPS.A"]})

    def test_load_missing_or_malformed_file_yields_empty(self):
        self.assertEqual(load_ioc_deps_file(self.tmp_dir / "missing.json"), {})
        bad = self.tmp_dir / "bad.json"
        bad.write_text("{not json")
        self.assertEqual(load_ioc_deps_file(bad), {})
        not_object = self.tmp_dir / "list.json"
        not_object.write_text("[1, 2]")
        self.assertEqual(load_ioc_deps_file(not_object), {})


if __name__ == '__main__':
    unittest.main()
