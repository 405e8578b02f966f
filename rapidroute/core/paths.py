"""
Route path helpers.

Patterns use ``:name`` segments, e.g. "/users/:user_id/posts/:post_id".
"""

import re
from functools import lru_cache
from typing import List, Pattern

_PARAM_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def normalize_path(path: str) -> str:
    """Ensure a single leading separator and no trailing one. An empty path is the root."""
    return "/" + path.strip().strip("/")


def join_paths(prefix: str, path: str) -> str:
    """
    Join a mount prefix and a route path with exactly one separator.

    Example: join_paths("/api/", "/widget/:id") -> "/api/widget/:id"
    """
    prefix = prefix.strip().strip("/")
    if not prefix:
        return normalize_path(path)
    tail = path.strip().strip("/")
    if not tail:
        return f"/{prefix}"
    return f"/{prefix}/{tail}"


def param_names(path: str) -> List[str]:
    """
    Names of the ``:name`` segments in declaration order.

    Raises:
        ValueError: a name is used twice
    """
    names = _PARAM_RE.findall(path)
    seen = set()
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate path parameter '{name}' in {path}")
        seen.add(name)
    return names


@lru_cache(maxsize=None)
def path_to_regex(path: str) -> Pattern[str]:
    """
    Convert a path pattern to a regular expression.

    Example: "/users/:user_id" -> "^/users/(?P<user_id>[^/]+)/?$"
    """
    parts = []
    pos = 0
    for match in _PARAM_RE.finditer(path):
        parts.append(re.escape(path[pos : match.start()]))
        parts.append(f"(?P<{match.group(1)}>[^/]+)")
        pos = match.end()
    parts.append(re.escape(path[pos:].rstrip("/")))
    return re.compile("^" + "".join(parts) + "/?$")


def path_shape(path: str) -> str:
    """
    Path with every parameter name blanked out.

    Two patterns with the same shape match the same concrete paths.
    Example: "/users/:user_id/" -> "/users/:"
    """
    return _PARAM_RE.sub(":", normalize_path(path))


def to_transport_path(path: str) -> str:
    """Rewrite ``:name`` segments to the ``{name}`` form Starlette routes expect."""
    return _PARAM_RE.sub(r"{\1}", path)
