"""Exception types raised by epub2speech."""


class ExtractionError(Exception):
    """Base class for failures that abort a range extraction."""


class MalformedIdentifier(ExtractionError, ValueError):
    """A content identifier cannot be split into a path and a fragment."""


class PageResolutionFailure(ExtractionError):
    """A document path has no corresponding page in the archive."""

    def __init__(self, document_path: str):
        super().__init__(f"No page found in archive for '{document_path}'")
        self.document_path = document_path


class PageContentUnavailable(ExtractionError):
    """A resolved page yields no markup."""

    def __init__(self, document_path: str):
        super().__init__(f"Page '{document_path}' has no content")
        self.document_path = document_path


class ParseFailure(ExtractionError):
    """The markup token stream of a page is invalid."""

    def __init__(self, document_path: str, reason: str):
        super().__init__(f"Failed to parse '{document_path}': {reason}")
        self.document_path = document_path


class UnsupportedFileType(ValueError):
    """The input file extension has no parser."""


class SpeechError(Exception):
    """Base class for text-to-speech failures."""


class MissingCredential(SpeechError):
    """A provider that requires authorization was configured without a key."""


class SpeechUnauthorized(SpeechError):
    """The speech service rejected the credential."""


class SpeechConnectionFailure(SpeechError):
    """The speech service could not be reached."""


class SpeechNoContent(SpeechError):
    """The speech service answered without audio."""


class SpeechWriteFailure(SpeechError):
    """Rendered audio could not be written to disk."""


class SpeechRequestFailed(SpeechError):
    """Any other provider failure."""
