class SongbirdError(Exception):
    pass


class SubmissionError(SongbirdError):
    """The backend refused to create a job, or could not be reached."""


class PollError(SongbirdError):
    """A single job status fetch failed."""


class DownloadError(SongbirdError):
    pass


class OutputResolutionError(SongbirdError):
    """A finished job is missing an output required by the resolution policy."""


class UnknownToolError(SongbirdError):
    pass


class StateFinalizedError(SongbirdError):
    pass


class StreamClosedError(SongbirdError):
    pass


class StreamConsumedError(SongbirdError):
    pass
