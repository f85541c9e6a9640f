from enum import Enum


class ProbeOutcome(str, Enum):
    """
    Result of one probe run against a target.
    """

    SUCCESS = "success"
    EXHAUSTED = "exhausted"
