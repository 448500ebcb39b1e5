class CGPAError(Exception):
    """Base class for failures reported back to the user."""


class SnapshotError(CGPAError, ValueError):
    """A saved data file could not be loaded."""


class InvalidMediaType(SnapshotError):
    def __init__(self, declared):
        self.declared = declared
        super().__init__(
            f"Invalid file type {declared!r}. Please select a valid JSON file."
        )


class UnparsableSnapshot(SnapshotError):
    pass


class MissingCourses(SnapshotError):
    pass


class NoValidCourses(SnapshotError):
    pass


class NothingToRender(CGPAError, ValueError):
    """There are no courses (or no complete ones) to put on a transcript."""
