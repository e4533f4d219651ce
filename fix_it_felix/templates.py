"""Template rendering utilities."""

from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

# Types that Jinja2 can render natively in our templates.
TemplateContextValue = str | int | bool | list[str] | list[tuple[str, int]] | None


@lru_cache(maxsize=1)
def _template_environment() -> Environment:
    """Build and cache the Jinja environment for comment templates.

    Templates are Markdown, so autoescaping is limited to HTML files.
    """
    return Environment(
        loader=PackageLoader("fix_it_felix", "templates"),
        autoescape=select_autoescape(enabled_extensions=("html", "htm")),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_template(template_name: str, **context: TemplateContextValue) -> str:
    """Render a template.

    Args:
        template_name: Template filename (e.g., "dry_run_comment.j2")
        **context: Template variables

    Returns:
        Rendered text

    """
    template = _template_environment().get_template(template_name)
    return template.render(**context).strip()
