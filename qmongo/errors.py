"""Exceptions raised by the package and helpers for classifying errors."""

from __future__ import annotations


class QmgoError(Exception):
    """Base class of every error raised by this package."""

    default_message = "qmongo error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NoSuchDocumentsError(QmgoError):
    """No document matched the filter of an operation that needs one."""

    default_message = "mongo: no documents in result"


class NotValidSliceToInsertError(QmgoError):
    """The documents given to a multi-insert are not a non-empty sequence."""

    default_message = "must be valid slice to insert"


class ReplacementContainUpdateOperatorsError(QmgoError):
    """A replacement document holds keys that start with '$'."""

    default_message = "replacement document cannot contain keys beginning with '$'"


def is_err_no_documents(err: BaseException | None) -> bool:
    """Tell whether ``err`` reports that no document was found."""
    return isinstance(err, NoSuchDocumentsError)


def is_dup(err: BaseException | None) -> bool:
    """Tell whether ``err`` is a MongoDB duplicate-key error (E11000)."""
    return err is not None and "E11000" in str(err)