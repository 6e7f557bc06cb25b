"""
Module: exceptions

Purpose: Domain-specific exception hierarchy for the contact dashboard.

All exceptions include context information and should be raised instead of returning None.
Reshaping functions never raise on data content; these cover IO, schema and
configuration failures around them.
"""

from typing import Any


class DashboardError(Exception):
    """Base exception for all dashboard errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class DataValidationError(DashboardError):
    """Raised when data fails schema validation."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field is not None:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = value
        super().__init__(message, context=ctx)
        self.field = field
        self.value = value


class DataLoadError(DashboardError):
    """Raised when the contact dataset cannot be read."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        errors: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if path is not None:
            ctx["path"] = path
        if errors:
            ctx["errors"] = errors
        super().__init__(message, context=ctx)
        self.path = path
        self.errors = errors or []


class BoundaryLoadError(DashboardError):
    """Raised when the geographic boundary collection cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        *,
        source: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["source"] = source
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message, context=ctx)
        self.source = source
        self.status_code = status_code


class ChartSpecError(DashboardError):
    """Raised when a chart specification cannot be built."""

    def __init__(
        self,
        message: str,
        *,
        chart_type: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["chart_type"] = chart_type
        super().__init__(message, context=ctx)
        self.chart_type = chart_type


class ReportGenerationError(DashboardError):
    """Raised when static report generation fails."""

    def __init__(
        self,
        message: str,
        *,
        report_type: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if report_type is not None:
            ctx["report_type"] = report_type
        super().__init__(message, context=ctx)
        self.report_type = report_type


class PipelineError(DashboardError):
    """Raised when a pipeline stage fails."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["stage"] = stage
        super().__init__(message, context=ctx)
        self.stage = stage
