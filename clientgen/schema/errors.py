"""
Error taxonomy for schema inference and client generation.

Every error can carry the (endpoint, action) pair it belongs to, so the
pipeline can report a failure against one action without touching siblings.
"""

from typing import Optional, Sequence


class ClientGenError(Exception):
    """Base class for all generator errors"""

    def __init__(self, message: str, endpoint: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.action = action

    def with_context(self, endpoint: Optional[str], action: Optional[str]) -> "ClientGenError":
        """Attach (endpoint, action) unless already attributed"""
        if self.endpoint is None:
            self.endpoint = endpoint
        if self.action is None:
            self.action = action
        return self

    @property
    def context(self) -> str:
        if self.endpoint is None and self.action is None:
            return ""
        return f"{self.endpoint or '?'}/{self.action or '?'}"

    def __str__(self) -> str:
        if self.context:
            return f"[{self.context}] {self.message}"
        return self.message


class ShapeConflict(ClientGenError):
    """Array elements (or a key's values across elements) have incompatible shapes"""

    def __init__(self, path: str, detail: str, **kwargs):
        self.path = path
        self.detail = detail
        super().__init__(f"shape conflict at '{path or '<root>'}': {detail}", **kwargs)


class AccessorConflict(ClientGenError):
    """Two JSON keys render to the same accessor name"""

    def __init__(self, accessor: str, keys: Sequence[str], **kwargs):
        self.accessor = accessor
        self.keys = tuple(keys)
        super().__init__(
            f"keys {', '.join(repr(k) for k in self.keys)} all render as accessor '{accessor}'",
            **kwargs,
        )


class UnsupportedFormat(ClientGenError):
    """Response example uses a format tag outside the known set"""

    def __init__(self, format_tag: str, **kwargs):
        self.format_tag = format_tag
        super().__init__(f"unsupported response format '{format_tag}'", **kwargs)


class FetchError(ClientGenError):
    """Example or service list could not be fetched or decoded"""


class OverrideConfigError(ClientGenError):
    """Malformed override rule"""
