"""Template rendering for emitted artifacts.

Output templates are Jinja2 files shipped in predeploy_gen/templates/ and
optionally overridden by a project directory. Undefined variables are errors,
not empty strings, so a template that references a field the registry does
not carry fails the run instead of emitting a blank constant.

Usage:
    from predeploy_gen.template import load_template, render_template

    text = render_template(load_template("address.sol.j2"), {"entries": [...]})
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, StrictUndefined
from jinja2 import Template, TemplateError

from .errors import EmissionError


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Jinja2 environment with project overrides taking precedence."""
    loaders = []
    if templates_dir is not None:
        loaders.append(FileSystemLoader(str(templates_dir)))
    loaders.append(PackageLoader("predeploy_gen", "templates"))
    return Environment(
        loader=ChoiceLoader(loaders),
        autoescape=False,  # Source code, not HTML
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def load_template(name: str, templates_dir: Path | None = None) -> Template:
    """Load a named template.

    Raises:
        EmissionError: If the template is missing or does not parse
    """
    try:
        return create_environment(templates_dir).get_template(name)
    except TemplateError as e:
        raise EmissionError(f"Cannot load template {name}: {e}", target=name) from e


def render_template(template: Template, context: dict[str, Any]) -> str:
    """Render a loaded template.

    Raises:
        EmissionError: On any rendering failure (e.g., undefined variable)
    """
    try:
        return template.render(**context)
    except TemplateError as e:
        raise EmissionError(f"Rendering {template.name} failed: {e}", target=template.name) from e
