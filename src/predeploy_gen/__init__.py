"""Predeploy address registry generator.

Lays out the address space for a runtime's predeployed system contracts and
mirrored tokens, and emits one consistent set of constants files from it.

Usage:
    from predeploy_gen import generate, load_config
    from predeploy_gen.compiler import CommandCompiler

    config = load_config("config/predeploy.yaml")
    generate(config, CommandCompiler.from_config(config))
"""

from .config import load_config
from .pipeline import generate

__all__ = ["generate", "load_config"]
