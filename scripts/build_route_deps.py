#!/usr/bin/env python3
"""Generate the route -> chunk map for a built project."""

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

from src.build.emitter import patch_emitted_chunks, write_route_deps_asset, write_route_deps_module
from src.build.exceptions import RouteDepsError
from src.build.route_deps_builder import RouteDepsBuilder
from src.chunks.bundle import load_bundle_description
from src.graph.graph_structures import RouteDepsMap
from src.utils.config_loader import load_app_config
from src.watcher.file_watcher import FileWatcherService


def _resolve_under(project_root: Path, value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else project_root / path


def write_outputs(route_deps_map: RouteDepsMap, project_root: Path, app_config: Dict[str, Any]) -> None:
    output_config = app_config["output"]
    verbose = app_config["general"]["verbose"]
    out_dir = _resolve_under(project_root, output_config["out_dir"])

    asset_path = write_route_deps_asset(route_deps_map, out_dir, output_config["asset_file_name"])
    patched = patch_emitted_chunks(out_dir, route_deps_map, verbose)
    module_path = _resolve_under(project_root, output_config.get("generated_module_path"))
    if module_path:
        write_route_deps_module(route_deps_map, module_path)
        print(f"Wrote generated module {module_path}")

    total_files = sum(len(files) for files in route_deps_map.values())
    print(f"Route deps map: {len(route_deps_map)} routes, {total_files} files -> {asset_path}")
    if patched:
        print(f"Replaced map placeholder in {len(patched)} chunk(s)")


def build_once(builder: RouteDepsBuilder, project_root: Path, app_config: Dict[str, Any]) -> RouteDepsMap:
    bundle_path = _resolve_under(project_root, app_config["output"]["bundle_description"])
    chunks = load_bundle_description(bundle_path, project_root)
    route_deps_map = asyncio.run(builder.run(chunks))
    write_outputs(route_deps_map, project_root, app_config)
    return route_deps_map


def watch(builder: RouteDepsBuilder, project_root: Path, app_config: Dict[str, Any]) -> None:
    watcher = FileWatcherService(project_root, builder.handle_file_event)
    bundle_path = _resolve_under(project_root, app_config["output"]["bundle_description"])
    watcher.start()
    print("Watching for changes. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
            if not builder.dirty:
                continue
            try:
                chunks = load_bundle_description(bundle_path, project_root)
            except RouteDepsError as e:
                print(f"Skipping rebuild: {e}")
                builder.dirty = False
                continue
            route_deps_map = builder.refresh_map(chunks)
            write_outputs(route_deps_map, project_root, app_config)
    except KeyboardInterrupt:
        print("\nKeyboard interrupt received.")
    finally:
        watcher.stop()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build the route dependency map from router, IoC and bundle information"
    )
    parser.add_argument("project_root", type=Path, help="Root of the frontend project")
    parser.add_argument(
        "--config", type=Path, default=None, help="Optional config YAML"
    )
    parser.add_argument(
        "--bundle", type=Path, default=None, help="Vite manifest or chunk list JSON"
    )
    parser.add_argument("--out-dir", type=Path, default=None, help="Directory holding the emitted chunks")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--watch", action="store_true", help="Rebuild the map when sources change")
    args = parser.parse_args()

    project_root = args.project_root.resolve()
    app_config = load_app_config(args.config, verbose=args.verbose)
    app_config["general"]["project_root"] = str(project_root)
    if args.verbose:
        app_config["general"]["verbose"] = True
    if args.bundle:
        app_config["output"]["bundle_description"] = str(args.bundle.resolve())
    if args.out_dir:
        app_config["output"]["out_dir"] = str(args.out_dir.resolve())

    try:
        builder = RouteDepsBuilder(project_root, app_config)
        build_once(builder, project_root, app_config)
    except (ValueError, RouteDepsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.watch:
        watch(builder, project_root, app_config)


if __name__ == "__main__":
    main()
