"""Named rule functions and loading of serialized templates.

Pure data cannot carry predicates or derivations, so a serialized template
refers to them by name -- ``{"rule": "<name>"}`` -- and the caller supplies
the functions through a ``RuleRegistry``.
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Any, Callable, Iterator, Mapping, Sequence

from tidykit.errors import TemplateValidationError
from tidykit.models import Computed, TableTemplate, fill_template_defaults

logger = logging.getLogger("tidykit")

RuleFn = Callable[..., Any]


class RuleRegistry:
    """Mapping of rule names to caller-supplied functions.

    Example::

        rules = RuleRegistry()

        @rules.register("is_year")
        def is_year(value):
            return isinstance(value, int) and 1900 <= value <= 2100
    """

    def __init__(self, rules: Mapping[str, RuleFn] | None = None) -> None:
        self._rules: dict[str, RuleFn] = {}
        for name, fn in (rules or {}).items():
            self.register(name, fn)

    def register(self, name: str, fn: RuleFn | None = None) -> Any:
        """Register *fn* under *name*; usable directly or as a decorator."""
        if fn is None:
            def decorator(func: RuleFn) -> RuleFn:
                self.register(name, func)
                return func

            return decorator
        if not callable(fn):
            raise TypeError(f"Rule '{name}' must be callable")
        if name in self._rules:
            raise ValueError(f"Rule '{name}' is already registered")
        self._rules[name] = fn
        return fn

    def get(self, name: str) -> RuleFn:
        try:
            return self._rules[name]
        except KeyError:
            raise ValueError(f"Unknown rule '{name}'") from None

    def computed(self, name: str) -> Computed:
        return Computed(self.get(name), name=name)

    def names(self) -> list[str]:
        return sorted(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def _read_file(path: pathlib.Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "pyyaml is required to load YAML template files. "
                "Install it with: pip install pyyaml"
            ) from exc
        with open(path) as fh:
            return yaml.safe_load(fh)
    if suffix == ".json":
        with open(path) as fh:
            return json.load(fh)
    raise ValueError(
        f"Unsupported template file extension '{suffix}'. "
        "Use .yaml, .yml, or .json."
    )


def load_templates(
    source: str | pathlib.Path | Mapping[str, Any] | Sequence[Any] | TableTemplate,
    rules: RuleRegistry | None = None,
) -> list[TableTemplate]:
    """Load a template forest from a file, a record, or a list of records.

    A single template (record or model) yields a one-element list.  Partial
    records are completed with defaults by ``fill_template_defaults``.

    Raises:
        TemplateValidationError: If any record is not a valid template.
        FileNotFoundError: If *source* is a path that does not exist.
    """
    if isinstance(source, (str, pathlib.Path)):
        data = _read_file(pathlib.Path(source))
    else:
        data = source

    if data is None:
        return []
    if isinstance(data, (Mapping, TableTemplate)):
        items: list[Any] = [data]
    elif isinstance(data, Sequence):
        items = list(data)
    else:
        raise TemplateValidationError(
            message=f"Template source must be a record or a list, got {type(data).__name__}",
            stage="template_load",
        )

    templates = [
        fill_template_defaults(item, rules, path=[i]) for i, item in enumerate(items)
    ]
    logger.debug("Loaded %d top-level template(s)", len(templates))
    return templates
