import logging

from api_service.formula.context import ResolutionContext
from api_service.formula.errors import ExpressionSyntaxError, FormulaError
from api_service.formula.expression import ShortcodeRef, parse
from api_service.formula.formatting import format_value
from api_service.formula.resolver import ShortcodeResolver
from api_service.formula.shortcodes import Shortcode, find_shortcodes

log = logging.getLogger(__name__)


def error_marker(e: Exception) -> str:
    return f"[Error: {e}]"


def _unit_for(resolver: ShortcodeResolver, node) -> str | None:
    """A lone [calc:x] carries its formula unit into the display."""
    if not isinstance(node, ShortcodeRef) or node.kind != "calc":
        return None
    try:
        return resolver.context.get_formula(node.name).unit
    except FormulaError:
        return None


def render_display(content: str, context: ResolutionContext, deadline=None) -> str:
    """
    Turn user-facing text into display text.

    Content that is a whole expression is evaluated once and formatted.
    Anything else is treated as prose: each shortcode in it is replaced by its
    formatted value, the surrounding text is kept verbatim, and a shortcode
    that fails is replaced by an error marker instead of failing the page.
    """
    if not content or not find_shortcodes(content):
        return content

    resolver = ShortcodeResolver(context, deadline=deadline)
    try:
        node = parse(content)
    except ExpressionSyntaxError:
        node = None

    if node is not None:
        try:
            value = resolver.resolve(content)
        except FormulaError as e:
            log.info("display expression failed: %s", e)
            return error_marker(e)
        return format_value(value, _unit_for(resolver, node))

    parts = list()
    last = 0
    for shortcode in find_shortcodes(content):
        parts.append(content[last:shortcode.start])
        parts.append(_render_shortcode(resolver, shortcode))
        last = shortcode.end
    parts.append(content[last:])
    return "".join(parts)


def _render_shortcode(resolver: ShortcodeResolver, shortcode: Shortcode) -> str:
    try:
        if shortcode.kind == "field":
            return format_value(resolver.resolve_field(shortcode.name))
        if shortcode.kind == "calc":
            value = resolver.resolve_calc(shortcode.name)
            return format_value(value, resolver.context.get_formula(shortcode.name).unit)
        return format_value(resolver.resolve_lookup(shortcode.name).value)
    except FormulaError as e:
        log.info("display shortcode %s failed: %s", shortcode.original, e)
        return error_marker(e)
