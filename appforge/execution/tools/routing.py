"""Guard against files that would break the generated app's routing.

The sandbox template is a Next.js project using the App Router only. A file
under ``pages/`` enables the legacy Pages Router next to it and the app then
fails with "App router and Pages router both match path".
"""

from collections.abc import Iterable

RESERVED_PREFIXES = ("pages/", "/pages/")


class RoutingConflictError(Exception):
    """A write targets a path reserved for the legacy routing convention."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f'ROUTING CONFLICT: Cannot create "{path}". This project uses App Router only. '
            f'Use "app/" directory instead (e.g., "app/page.tsx" instead of "pages/index.tsx"). '
            f'Creating files in pages/ will cause: "App router and Pages router both match path" '
            f"error."
        )


def is_reserved_path(path: str) -> bool:
    return path.startswith(RESERVED_PREFIXES)


def check_routing_conflicts(paths: Iterable[str]) -> None:
    """Raise for the first path that starts with a reserved prefix.

    Raises:
        RoutingConflictError: If any path is reserved
    """
    for path in paths:
        if is_reserved_path(path):
            raise RoutingConflictError(path)
