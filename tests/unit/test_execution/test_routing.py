"""Tests for the routing conflict guard."""

import pytest

from appforge.execution.tools.routing import (
    RoutingConflictError,
    check_routing_conflicts,
    is_reserved_path,
)


class TestRoutingGuard:
    """Tests for reserved routing paths."""

    @pytest.mark.parametrize("path", ["pages/index.tsx", "/pages/api/hello.ts"])
    def test_reserved_paths(self, path):
        """Paths under pages/ are reserved."""
        assert is_reserved_path(path) is True

    @pytest.mark.parametrize("path", ["app/page.tsx", "app/pages/list.tsx", "pagesx/a.ts"])
    def test_allowed_paths(self, path):
        """Only the pages/ prefix is reserved."""
        assert is_reserved_path(path) is False

    def test_first_conflict_is_reported(self):
        """The error names the first reserved path and points at app/."""
        with pytest.raises(RoutingConflictError) as exc_info:
            check_routing_conflicts(["app/page.tsx", "pages/index.tsx", "/pages/b.tsx"])

        assert exc_info.value.path == "pages/index.tsx"
        message = str(exc_info.value)
        assert message.startswith('ROUTING CONFLICT: Cannot create "pages/index.tsx".')
        assert 'Use "app/" directory instead' in message
        assert "App router and Pages router both match path" in message

    def test_no_conflicts(self):
        """Allowed batches pass."""
        check_routing_conflicts(["app/page.tsx", "app/layout.tsx"])
