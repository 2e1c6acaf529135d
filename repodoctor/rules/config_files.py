"""Shared tool configuration (biome, tsconfig)."""

from typing import Any, Optional

from ..models import ProjectContext
from .base import define_module
from .builders import json_config_rule

BIOME_SCHEMA = "https://biomejs.dev/schemas/1.9.4/schema.json"
SHARED_BIOME = "@repodoctor/biome-config"
SHARED_TSCONFIG = "@repodoctor/tsconfig"


def _biome_error(config: Any, ctx: ProjectContext) -> Optional[str]:
    if ctx.is_shared_config_source:
        # the package that publishes the shared config cannot extend itself
        return None
    extends = config.get("extends") if isinstance(config, dict) else None
    if not extends:
        return "biome.json does not extend shared config"
    return None


def _biome_fix(config: Any, ctx: ProjectContext) -> dict:
    config = config if isinstance(config, dict) else {}
    return {"$schema": BIOME_SCHEMA, "extends": [SHARED_BIOME], **{k: v for k, v in config.items() if k != "extends"}}


def _tsconfig_error(config: Any, ctx: ProjectContext) -> Optional[str]:
    if ctx.is_shared_config_source:
        return None
    if not isinstance(config, dict) or not config.get("extends"):
        return "tsconfig.json does not extend shared config"
    return None


def _tsconfig_fix(config: Any, ctx: ProjectContext) -> dict:
    config = config if isinstance(config, dict) else {}
    return {**config, "extends": SHARED_TSCONFIG}


MODULE = define_module(
    "config",
    "Config",
    "Shared tool configuration",
    [
        json_config_rule(
            "config/biome-extends",
            "biome.json",
            _biome_error,
            fix=_biome_fix,
            hint=f'Add "extends": ["{SHARED_BIOME}"] to biome.json',
            skip_if_missing=True,
        ),
        json_config_rule(
            "config/tsconfig-extends",
            "tsconfig.json",
            _tsconfig_error,
            fix=_tsconfig_fix,
            hint=f'Add "extends": "{SHARED_TSCONFIG}" to tsconfig.json',
            skip_if_missing=True,
        ),
    ],
)
