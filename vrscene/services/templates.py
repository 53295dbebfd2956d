"""Template engine: fills a scene document's placeholder slots.

Substitution is literal. A placeholder that starts a line has every line of a
multi-line fragment indented to the placeholder's column.

Templates may wrap default entities in ``<!-- default: light, camera -->`` ...
``<!-- /default -->``. The block is dropped when the scene uses any of the
listed component or primitive names, so the caller's configuration is the only
one in effect.
"""

import re
from pathlib import Path

import structlog

logger = structlog.get_logger()

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

BUILTIN_TEMPLATES = {
    "empty": "empty.html",
    "basic": "basic.html",
    "basic_map": "basic_map.html",
}

TITLE = "{{TITLE}}"
DESCRIPTION = "{{DESCRIPTION}}"
JS_SOURCES = "{{JS_SOURCES}}"
ASSETS = "{{ASSETS}}"
ENTITIES = "{{ENTITIES}}"
SCENE_COMPONENTS = "{{SCENE_COMPONENTS}}"

PLACEHOLDERS = (TITLE, DESCRIPTION, JS_SOURCES, ASSETS, ENTITIES, SCENE_COMPONENTS)

_DEFAULT_BLOCK = re.compile(
    r"^[ \t]*<!-- default: (?P<keys>[^>]*?) -->[ \t]*\n"
    r"(?P<body>.*?)"
    r"^[ \t]*<!-- /default -->[ \t]*\n",
    re.MULTILINE | re.DOTALL,
)


class TemplateNotFoundError(ValueError):
    """Raised when a template is neither built-in, a file, nor a document."""

    pass


def _is_document(template: str) -> bool:
    return "<" in template and any(token in template for token in PLACEHOLDERS)


def check_template(template: str) -> str:
    """Validate that a template identifier can be loaded.

    Returns:
        The identifier unchanged

    Raises:
        TemplateNotFoundError: If it cannot be resolved
    """
    if template in BUILTIN_TEMPLATES or _is_document(template):
        return template
    try:
        is_file = Path(template).is_file()
    except (OSError, ValueError):
        # Names too long for the filesystem, or containing NUL bytes
        is_file = False
    if is_file:
        return template
    raise TemplateNotFoundError(
        f"Unknown template '{template}'. Use one of {sorted(BUILTIN_TEMPLATES)}, "
        "a path to a template file, or a template document"
    )


def load_template(template: str) -> str:
    """Return the template document for a built-in name, file path or raw document."""
    check_template(template)
    if template in BUILTIN_TEMPLATES:
        return (TEMPLATE_DIR / BUILTIN_TEMPLATES[template]).read_text(encoding="utf-8")
    if _is_document(template):
        return template
    return Path(template).read_text(encoding="utf-8")


def strip_overridden_defaults(document: str, used_names: set[str]) -> str:
    """Drop default blocks whose keys are used by the scene; unwrap the rest."""

    def replace(match: re.Match) -> str:
        keys = {key.strip() for key in match.group("keys").split(",") if key.strip()}
        overridden = keys & used_names
        if overridden:
            logger.debug("template_default_suppressed", keys=sorted(overridden))
            return ""
        return match.group("body")

    return _DEFAULT_BLOCK.sub(replace, document)


_PLACEHOLDER = re.compile(
    r"(?P<indent>^[ \t]*)?(?P<token>" + "|".join(map(re.escape, PLACEHOLDERS)) + ")",
    re.MULTILINE,
)


def fill_template(
    document: str,
    fragments: dict[str, str],
    used_names: set[str] | None = None,
) -> str:
    """Substitute fragments into a template document.

    Args:
        document: Template text containing placeholder tokens
        fragments: Mapping of placeholder token to generated markup
        used_names: Component and primitive names present in the scene

    Returns:
        The completed document
    """
    unknown = set(fragments) - set(PLACEHOLDERS)
    if unknown:
        raise KeyError(f"Unrecognised placeholders: {sorted(unknown)}")

    document = strip_overridden_defaults(document, used_names or set())

    def substitute(match: re.Match) -> str:
        fragment = fragments.get(match.group("token"), "")
        indent = match.group("indent")
        if indent is None:
            return fragment
        return "\n".join(
            f"{indent}{line}" if line or i == 0 else line
            for i, line in enumerate(fragment.split("\n"))
        )

    # Single pass: inserted fragments are never rescanned for placeholders
    return _PLACEHOLDER.sub(substitute, document)
