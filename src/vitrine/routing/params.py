"""Route pattern placeholders and the captured-value charset.

A pattern is literal text plus ``{name}`` placeholders, ``name`` in
``[a-z0-9_]+``. Every placeholder captures the same restricted charset,
so values never carry slashes, dots or quotes. Static text matches
without regard to case; captured values keep the charset exactly.
"""

import re

from vitrine.errors import ConfigurationError

PLACEHOLDER = re.compile(r"\{([a-z0-9_]+)\}")

# Letters (with the Latin-1 accents used in Portuguese/Spanish), digits,
# underscore, hyphen and space.
VALUE_CHARSET = r"a-zA-Z0-9_\- áàâãéèêíïóôõöúçñÁÀÂÃÉÈÊÍÏÓÔÕÖÚÇÑüÜ"
VALUE_PATTERN = f"([{VALUE_CHARSET}]+)"


def normalize_path(path: str) -> str:
    """Prefix *path* with ``/`` when it does not already start with one."""
    return path if path.startswith("/") else f"/{path}"


def parse_param_names(pattern: str) -> tuple[str, ...]:
    """Return the placeholder names of *pattern* in order of appearance.

    Raises ``ConfigurationError`` when a name repeats, since positional
    assignment of captured groups would be ambiguous.
    """
    names = tuple(PLACEHOLDER.findall(pattern))
    seen: set[str] = set()
    for name in names:
        if name in seen:
            msg = f"Route pattern {pattern!r} repeats placeholder {{{name}}}."
            raise ConfigurationError(msg)
        seen.add(name)
    return names


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile *pattern* into a matcher for the whole path.

    Static text is escaped and wrapped in an inline ``(?ai:...)`` group, so
    literal segments ignore ASCII case only and folds such as the Kelvin
    sign to ``k`` never apply. The value charset is matched as written.
    Each placeholder becomes one capture group. The end anchor is ``\\Z``,
    so a trailing newline never matches.

    ::

        compile_pattern("/produtos/{id}").match("/PRODUTOS/42").groups()
        # ("42",)
    """
    parts: list[str] = []
    last = 0
    for m in PLACEHOLDER.finditer(pattern):
        parts.append(_static(pattern[last : m.start()]))
        parts.append(VALUE_PATTERN)
        last = m.end()
    parts.append(_static(pattern[last:]))
    return re.compile(f"^{''.join(parts)}\\Z")


def _static(text: str) -> str:
    return f"(?ai:{re.escape(text)})" if text else ""
