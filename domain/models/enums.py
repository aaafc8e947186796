from enum import Enum


class ProcessStatus(str, Enum):
    COMPLETED = "Completed"
    FAILED = "Failed"


class FailureCategory(str, Enum):
    """Why a provider attempt did not produce a usable offer."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport_error"
    MALFORMED_RESPONSE = "malformed_response"
    REJECTED = "business_rejection"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected_error"

    @property
    def label(self) -> str:
        return _LABELS[self]

    def describe(self, detail: str | None = None) -> str:
        return f"{self.label}: {detail}" if detail else self.label


_LABELS = {
    FailureCategory.TIMEOUT: "Request timed out",
    FailureCategory.TRANSPORT: "Transport error",
    FailureCategory.MALFORMED_RESPONSE: "Malformed response",
    FailureCategory.REJECTED: "Rejected by provider",
    FailureCategory.CANCELLED: "Request was cancelled",
    FailureCategory.UNEXPECTED: "Unexpected error",
}
