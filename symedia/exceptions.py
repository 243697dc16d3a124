"""
Custom exception hierarchy for symedia.

Per-file problems never escape the walker; they end up in the inventory.
Only WalkError and ReportError are meant to reach the command line.
"""


class SymediaError(Exception):
    """Base exception for all symedia errors."""
    pass


class MetadataExtractionError(SymediaError):
    """Raised when a metadata tool cannot be run or read."""
    pass


class ProbeReportError(MetadataExtractionError):
    """Raised when the ffprobe JSON report cannot be decoded."""
    pass


class FileOperationError(SymediaError):
    """Raised when creating a destination directory or hard link fails."""
    pass


class WalkError(SymediaError):
    """Raised when the source tree itself cannot be traversed."""
    pass


class ReportError(SymediaError):
    """Raised when the inventory or the error report cannot be written."""
    pass
