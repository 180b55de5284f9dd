"""Jinja2 rendering of subject and body templates onto a builder."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Mapping, Tuple

from jinja2 import Environment, StrictUndefined, Undefined, UndefinedError

from . import config

if TYPE_CHECKING:
    from .builder import MessageBuilder

logger = logging.getLogger(__name__)

_UNDEFINED_MESSAGE = re.compile(r"'(.+?)' is undefined")
_PLACEHOLDER = re.compile(r"{{\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\||}})")


class TemplateRenderingError(RuntimeError):
    """Raised when a template refers to a placeholder missing from the context."""

    def __init__(self, template_type: str, placeholder: str, original: Exception) -> None:
        self.template_type = template_type
        self.placeholder = placeholder
        self.original = original
        super().__init__(f"Placeholder '{placeholder}' missing while rendering the {template_type} template.")


class _BlankUndefined(Undefined):
    def _fail_with_undefined_error(self, *args, **kwargs):  # type: ignore[override]
        return ""


def _datefmt(value: object, fmt: str = "%Y-%m-%d") -> str:
    if isinstance(value, (datetime, date)):
        return value.strftime(fmt)
    return "" if value is None else str(value)


def _environment(undefined: type[Undefined]) -> Environment:
    environment = Environment(autoescape=False, undefined=undefined, keep_trailing_newline=True)
    environment.filters["datefmt"] = _datefmt
    return environment


_ENVIRONMENTS = {False: _environment(StrictUndefined), True: _environment(_BlankUndefined)}


def placeholders(text: str) -> set[str]:
    """Names referenced as ``{{ name }}`` or ``{{ name|filter }}`` in ``text``."""
    return set(_PLACEHOLDER.findall(text))


def render(
    subject_template: str,
    body_template: str,
    context: Mapping[str, object],
    *,
    allow_missing: bool = False,
    on_missing: Callable[[str], None] | None = None,
) -> Tuple[str, str]:
    """Render subject and body.

    ``now`` and ``today`` are available unless the context overrides them.
    With ``allow_missing`` unknown placeholders render empty and are
    reported once each, in sorted order, through ``on_missing``.
    """
    now = datetime.now()
    variables = {"now": now, "today": now.date(), **context}
    environment = _ENVIRONMENTS[allow_missing]

    rendered = []
    for template_type, template in (("subject", subject_template), ("body", body_template)):
        try:
            rendered.append(environment.from_string(template).render(variables))
        except UndefinedError as exc:
            match = _UNDEFINED_MESSAGE.search(str(exc))
            raise TemplateRenderingError(template_type, match.group(1) if match else str(exc), exc) from exc

    if allow_missing and on_missing is not None:
        missing = (placeholders(subject_template) | placeholders(body_template)) - variables.keys()
        for name in sorted(missing):
            on_missing(name)

    subject, body = rendered
    return subject, body


def _warn_missing(name: str) -> None:
    logger.warning("Placeholder '%s' is missing, rendered as an empty string.", name)


def apply_templates(
    builder: "MessageBuilder",
    subject_template: str,
    body_template: str,
    context: Mapping[str, object],
    *,
    content_type: str = config.TEXT_PLAIN,
    allow_missing: bool = False,
) -> "MessageBuilder":
    """Render both templates and store the results as subject and content of ``builder``.

    Nothing is written to the builder when rendering fails.
    """
    subject, body = render(
        subject_template, body_template, context, allow_missing=allow_missing, on_missing=_warn_missing
    )
    builder.subject = subject
    return builder.set_content(body, content_type)
