from __future__ import annotations


class LayoutError(ValueError):
    """Raised for malformed chart input at the API boundary.

    A render pass itself never raises; it degrades to empty axes and labels.
    """
