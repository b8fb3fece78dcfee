"""Root pytest configuration for pytest-covrunner.

Size markers are applied here so that doctests collected from ``src`` are
marked too. Fixtures live in tests/conftest.py.
"""

from __future__ import annotations

from pathlib import Path

import pytest


SIZE_MARKERS = ('small', 'medium', 'large')


def _size_for(item: pytest.Item) -> str | None:
    """Return the size implied by an item's location, if any."""
    path_parts = Path(str(item.fspath)).parts
    for size in SIZE_MARKERS:
        if size in path_parts:
            return size
    if 'src' in path_parts:
        # Doctests
        return 'small'
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config,  # noqa: ARG001
    items: list[pytest.Item],
) -> None:
    """Mark every collected item with its size unless it already has one."""
    for item in items:
        if any(marker.name in SIZE_MARKERS for marker in item.iter_markers()):
            continue
        size = _size_for(item)
        if size is not None:
            item.add_marker(getattr(pytest.mark, size))
