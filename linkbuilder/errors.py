"""Exception types raised by linkbuilder."""

from __future__ import annotations


class LinkError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(LinkError):
    """Bad input folder, unmapped file, malformed mapping or missing setting.

    Aborts the whole run.
    """


class DocumentCenterError(LinkError):
    """A Document Center request failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(DocumentCenterError):
    """Sign-in was refused or the session key is no longer accepted."""


class UploadError(DocumentCenterError):
    """A single document could not be uploaded.

    ``reason`` is one of ``network``, ``auth``, ``duplicate``, ``quota``,
    ``missing_folder``, ``io`` or ``rejected``.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str = "rejected",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.reason = reason
