"""Errors raised synchronously by installer operations.

Each error names an i18n key instead of carrying a message, so the HTTP layer
can render it in the UI language while logs stay in English.
"""


class AppBaseError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(
        self,
        i18n_key: str,
        status_code: int | None = None,
        retriable: bool = False,
        **params: object,
    ) -> None:
        """
        Args:
            i18n_key: Dot path in i18n.json (e.g. 'launch.path_missing')
            status_code: Overrides the class default
            retriable: Whether repeating the request may succeed
            **params: Values for the message placeholders
        """
        super().__init__(i18n_key)
        self.i18n_key = i18n_key
        if status_code is not None:
            self.status_code = status_code
        self.retriable = retriable
        self.params = params

    def localized(self, lang: str = "en") -> str:
        from indextts_installer.services.i18n import get_i18n_service

        return get_i18n_service().translate(self.i18n_key, lang=lang, **self.params)

    def __str__(self) -> str:
        return self.localized("en")


class ResourceNotFoundError(AppBaseError):
    """A path the caller named does not exist."""

    status_code = 404


class ResourceConflictError(AppBaseError):
    """The request clashes with current state: a run in flight, a populated target."""

    status_code = 409


class ValidationError(AppBaseError):
    status_code = 400


class OperationalError(AppBaseError):
    """The host refused: spawning, creating directories, probing."""
