"""
Exception hierarchy shared by the checkmate core.

Every error raised on purpose by the package derives from
:class:`CheckmateError`, so callers can catch the whole family at once.
"""


class CheckmateError(Exception):
    """Base exception for checkmate errors."""

    pass


class HunkError(CheckmateError):
    """A hunk does not fit the document it is applied to."""

    pass


class TransactionError(CheckmateError):
    """Base exception for transaction errors."""

    pass


class NestedTransactionError(TransactionError):
    """A transaction was started while another is active on the same document."""

    pass


class MetadataError(CheckmateError):
    """Base exception for metadata errors."""

    pass


class UnknownTagError(MetadataError):
    """A metadata tag has no definition and no value was given."""

    pass


class DocumentReadError(CheckmateError):
    """A document could not be read from disk."""

    pass


class DocumentWriteError(CheckmateError):
    """A document could not be written; the in-memory copy is unchanged."""

    pass
