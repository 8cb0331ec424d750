"""
Error taxonomy for the interview core.

Errors raised before a session commits to an interview are surfaced to
the host; errors raised inside the batch pipeline are absorbed into the
affected slot and never escape it.
"""


class InterviewError(Exception):
    """Base class for all interview core errors."""


class StateTransitionError(InterviewError):
    """Raised when an event is not valid in the current session state."""


class SessionNotFound(InterviewError):
    """Raised when the host refers to an unknown session id."""


class DeviceUnavailable(InterviewError):
    """The audio input device could not be acquired."""


class GenerationFailed(InterviewError):
    """The text-generation collaborator failed or returned nothing usable."""


class TranscriptionError(InterviewError):
    """Base class for the transcription protocol failures."""


class UploadFailed(TranscriptionError):
    """The audio blob could not be uploaded to the transcription service."""


class SubmitFailed(TranscriptionError):
    """The transcription job could not be submitted."""


class TranscriptionFailed(TranscriptionError):
    """The transcription service reported the job as failed."""


class TranscriptionTimedOut(TranscriptionError):
    """The job did not complete within the polling ceiling."""


class ScoringMalformed(InterviewError):
    """The scoring collaborator returned output that is not a score object."""


class ScoringFailed(InterviewError):
    """Scoring an answer failed unexpectedly."""
