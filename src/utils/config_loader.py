import copy
import yaml  # from PyYAML
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

DEFAULT_CONFIG_FILENAMES = ["route_deps.yaml", "route_deps.yml"]

DEFAULT_APP_CONFIG: Dict[str, Any] = {
    "general": {
        "verbose": False,
        "project_root": None,  # Set by the CLI
    },
    "resolve": {
        "aliases": {"@": "src"},  # Relative targets are taken from project_root
        "extensions": [".ts", ".tsx", ".js", ".jsx", ".mjs", ".vue", ".json"],
        "excluded_namespace": "node_modules",  # Static edges into this namespace are not walked
    },
    "route_deps": {
        "router_dir": "src/ui/router",
        "ioc_map_files": [],  # Priority order: later files override earlier ones
        "source_dir": "src",
        "virtual_module_id": "virtual:route-deps-map",
        "enable_glob_imports": True,
        "include_static_chunks": False,
        "include_chunk_patterns": [],  # e.g. ["loader-*", "service-*"]
        "ioc_deps_file": None,  # Optional JSON of module id -> DepIds, merged with scanned usages
        "define_deps_functions": ["defineDeps"],
        "define_component_functions": ["defineComponent", "_defineComponent"],
    },
    "output": {
        "out_dir": "dist",
        "bundle_description": "dist/.vite/manifest.json",  # Vite manifest or {"chunks": [...]} list
        "asset_file_name": "route-deps-map.json",
        "generated_module_path": None,  # Optional .ts/.js module exporting the map
    },
}


# Mapping-valued options a user file replaces as a whole instead of merging into.
REPLACED_MAPPINGS = {("resolve", "aliases")}


def merge_configs(
    base_config: Dict[str, Any], user_config: Dict[str, Any], _path: Tuple[str, ...] = ()
) -> Dict[str, Any]:
    merged = base_config.copy()
    for key, value in user_config.items():
        key_path = _path + (key,)
        if (
            isinstance(value, dict)
            and isinstance(merged.get(key), dict)
            and key_path not in REPLACED_MAPPINGS
        ):
            merged[key] = merge_configs(merged[key], value, key_path)
        else:
            merged[key] = value
    return merged


def load_app_config(config_file_path: Optional[Path] = None, verbose: bool = False) -> Dict[str, Any]:
    current_config = copy.deepcopy(DEFAULT_APP_CONFIG)

    file_to_load: Optional[Path] = None

    if config_file_path and config_file_path.is_file():
        file_to_load = config_file_path
    elif config_file_path:
        print(f"ConfigLoader Warning: Config file {config_file_path} not found. Using defaults.")
    else:
        for filename in DEFAULT_CONFIG_FILENAMES:
            default_path = Path.cwd() / filename
            if default_path.is_file():
                file_to_load = default_path
                break

    if file_to_load:
        try:
            with open(file_to_load, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
            if isinstance(user_config, dict):
                current_config = merge_configs(current_config, user_config)
            elif user_config is not None:
                print(f"ConfigLoader Warning: {file_to_load} does not contain a mapping. Using defaults.")
            if verbose:
                print(f"ConfigLoader: Loaded configuration from {file_to_load}")
        except yaml.YAMLError as e_yaml:
            print(
                f"ConfigLoader Warning: Error parsing YAML config file {file_to_load}: {e_yaml}. Using defaults."
            )
        except OSError as e_os:
            print(
                f"ConfigLoader Warning: Error loading config file {file_to_load}: {e_os}. Using defaults."
            )
    elif verbose:
        print(
            "ConfigLoader Info: No user config file provided or found in default locations. Using built-in defaults."
        )

    return current_config


def get_default_config_yaml_example() -> str:
    return yaml.dump(DEFAULT_APP_CONFIG, sort_keys=False, indent=2)


if __name__ == "__main__":
    print(get_default_config_yaml_example())
