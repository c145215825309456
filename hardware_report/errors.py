# hardware_report/errors.py
"""
Error taxonomy for hardware detection.

Detection errors are local to a single detector attempt. The detection chain
records them as diagnostics; they never abort a category or the report.
"""

from typing import Optional


class DetectionError(Exception):
    """Base class for a failed detector attempt"""

    kind = "detection_failed"

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.method = method

    def with_method(self, method: str) -> "DetectionError":
        """Attach the detection method name if the source did not know it"""
        if self.method is None:
            self.method = method
        return self

    def to_dict(self) -> dict:
        return {
            'method': self.method,
            'kind': self.kind,
            'message': self.message,
        }

    def __str__(self):
        prefix = f"[{self.method}] " if self.method else ""
        return f"{prefix}{self.kind}: {self.message}"


class UnavailableError(DetectionError):
    """Tool or file absent on this host"""
    kind = "unavailable"


class ExecutionFailedError(DetectionError):
    """Non-zero exit status or timeout"""
    kind = "execution_failed"


class ParseFailedError(DetectionError):
    """Output present but not in the expected shape"""
    kind = "parse_failed"


class PermissionDeniedError(DetectionError):
    """Privilege required and not held"""
    kind = "permission_denied"


class UnitContractError(ValueError):
    """
    A parser produced a value that violates its declared unit contract,
    e.g. a negative byte count. This is a parser bug, not a runtime condition.
    """
