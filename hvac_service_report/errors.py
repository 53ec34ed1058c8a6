"""
Exception types raised by the report pipeline.
"""


class ReportError(Exception):
	"""Base class for report errors."""


class ValidationError(ReportError):
	"""A required unit field is missing at creation or commit time."""


class EncodeError(ReportError):
	"""An image resource could not be read or decoded."""


class RenderError(ReportError):
	"""The surface renderer could not produce a surface."""


class NotFoundError(ReportError, LookupError):
	"""No unit exists for the requested id."""


class ExportInProgressError(ReportError):
	"""An export was requested while another export is still running."""
