from songbird.jobs.outputs import (
    CONVERSION_OUTPUT_POLICY_V1,
    CaptionerOutputs,
    ConversionOutputs,
    FileSelector,
    OutputResolutionPolicy,
)
from songbird.jobs.poller import JobPoller, PollOutcome, PollReason
from songbird.jobs.submission import JobSubmitter

__all__ = [
    "CONVERSION_OUTPUT_POLICY_V1",
    "CaptionerOutputs",
    "ConversionOutputs",
    "FileSelector",
    "JobPoller",
    "JobSubmitter",
    "OutputResolutionPolicy",
    "PollOutcome",
    "PollReason",
]
