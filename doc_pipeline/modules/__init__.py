"""
Cleaner module registry.

Modules are identified by a stable name. The registry also exposes each
module's option specs, in the shape the configuration loader consumes:

    get_module_config("link-detection")
    {
        "name": "link-detection",
        "description": "...",
        "specs": {"overlap_threshold": {"value": 0.7, "description": "..."}, ...}
    }
"""

from __future__ import annotations

from typing import Any, Optional

from ..cleaner import Module
from ..config import PipelineConfig
from ..exceptions import ModuleError, UnknownModuleError
from .link_detection import LinkDetectionModule

MODULES: dict[str, type[Module]] = {
    LinkDetectionModule.name: LinkDetectionModule,
}


def list_modules() -> list[str]:
    return sorted(MODULES)


def get_module_class(name: str) -> type[Module]:
    try:
        return MODULES[name]
    except KeyError:
        raise UnknownModuleError(name) from None


def get_module(name: str, options: Optional[dict[str, Any]] = None) -> Module:
    return get_module_class(name)(options)


def get_module_config(name: str) -> dict[str, Any]:
    """Default option specs of a module."""
    module_cls = get_module_class(name)
    specs = {
        option: {"value": info.default, "description": info.description or ""}
        for option, info in module_cls.Options.model_fields.items()
    }
    return {
        "name": module_cls.name,
        "description": module_cls.description,
        "specs": specs,
    }


def fill_config_with_specs(config: PipelineConfig) -> list[Any]:
    """
    Cleaner list with each module expanded to `[name, specs]`.

    Per-run overrides from the configuration replace the spec values.
    Modules without options stay plain names.
    """
    filled: list[Any] = []
    for name, overrides in config.cleaner_modules():
        specs = get_module_config(name)["specs"]
        for key, value in overrides.items():
            if key not in specs:
                raise ModuleError(f"Unknown option '{key}'", module_name=name)
            specs[key]["value"] = value
        filled.append([name, specs] if specs else name)
    return filled


__all__ = [
    "MODULES",
    "LinkDetectionModule",
    "list_modules",
    "get_module",
    "get_module_class",
    "get_module_config",
    "fill_config_with_specs",
]
