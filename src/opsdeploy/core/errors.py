#!/usr/bin/env python3
"""
Unified error handling for opsdeploy.

Structured exceptions carry a category, an optional ErrorContext and
suggestions for the operator. ErrorHandler renders them as Rich panels.

Only lookup and configuration problems are raised. Operational failures
(failed deployments, health timeouts) are returned as result objects.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel


class ErrorCategory(Enum):
    """Error category enumeration."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    INVENTORY = "inventory"
    SERVICE = "service"


@dataclass
class ErrorContext:
    """Where an error happened."""

    operation: str
    phase: Optional[str] = None
    component: Optional[str] = None
    app_id: Optional[str] = None
    layer_name: Optional[str] = None
    instance_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


def create_error_context(operation: str, **kwargs) -> ErrorContext:
    """Convenience constructor for ErrorContext."""
    return ErrorContext(operation=operation, **kwargs)


class OpsDeployError(Exception):
    """Base class for all opsdeploy errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        context: Optional[ErrorContext] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.cause = cause


class ValidationError(OpsDeployError):
    """Invalid arguments passed by a caller."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, ErrorCategory.VALIDATION, **kwargs)


class EmptyTargetError(ValidationError):
    """An explicit instance set was empty.

    ``None`` means "every instance of the stack"; an empty collection is
    never silently widened to that.
    """


class ConfigurationError(OpsDeployError):
    """Invalid or unreadable configuration."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, ErrorCategory.CONFIGURATION, **kwargs)


class InventoryError(OpsDeployError):
    """Stack inventory could not be resolved."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.INVENTORY, **kwargs)


class AppNotFoundError(InventoryError):
    """Application id matched zero or several applications."""

    def __init__(self, app_id: str, matches: int = 0, **kwargs):
        kwargs.setdefault(
            "suggestions",
            [
                "Check the application id",
                "Check that the credentials and region can see the stack",
            ],
        )
        super().__init__(f"App {app_id} not found.", **kwargs)
        self.app_id = app_id
        self.matches = matches


class LayerNotFoundError(InventoryError):
    """Layer name does not exist in the stack."""

    def __init__(self, layer_name: str, available: Optional[List[str]] = None, **kwargs):
        available = sorted(available or [])
        if available:
            kwargs.setdefault("suggestions", [f"Available layers: {', '.join(available)}"])
        super().__init__(f"Layer {layer_name} not found.", **kwargs)
        self.layer_name = layer_name
        self.available = available


class ServiceError(OpsDeployError):
    """A cloud service call failed.

    ``code`` is the service's error code (e.g. "InvalidInstance"), empty when
    the failure did not come with one.
    """

    def __init__(self, message: str, code: str = "", **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, ErrorCategory.SERVICE, **kwargs)
        self.code = code


class DeploymentServiceError(ServiceError):
    """Deployment service call failed."""


class LoadBalancerServiceError(ServiceError):
    """Load balancer service call failed."""


class ErrorHandler:
    """Renders errors on a Rich console."""

    _TITLES = {
        ErrorCategory.VALIDATION: ("⚠️", "Validation Error"),
        ErrorCategory.CONFIGURATION: ("⚙️", "Configuration Error"),
        ErrorCategory.INVENTORY: ("🔍", "Inventory Error"),
        ErrorCategory.SERVICE: ("☁️", "Service Error"),
    }

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def handle_error(
        self,
        error: BaseException,
        context: Optional[ErrorContext] = None,
        show_traceback: bool = False,
    ) -> None:
        """
        Display an error panel.

        Args:
            error: Exception to display
            context: Context to show when the error carries none
            show_traceback: Print the traceback as well (verbose mode only)
        """
        if isinstance(error, OpsDeployError):
            emoji, title = self._TITLES.get(error.category, ("❌", "Error"))
            context = error.context or context
            suggestions = error.suggestions
        else:
            emoji, title = "❌", type(error).__name__
            suggestions = []

        lines = [f"[bold red]{error}[/bold red]"]
        if context is not None:
            lines.append("")
            lines.append(f"Operation: [cyan]{context.operation}[/cyan]")
            for label, value in (
                ("App", context.app_id),
                ("Layer", context.layer_name),
                ("Instance", context.instance_id),
            ):
                if value:
                    lines.append(f"{label}: [cyan]{value}[/cyan]")
        cause = getattr(error, "cause", None)
        if cause is not None:
            lines.append(f"Caused by: [yellow]{cause}[/yellow]")
        if suggestions:
            lines.append("")
            lines.append("💡 [cyan]Suggestions:[/cyan]")
            lines.extend(f"  • {suggestion}" for suggestion in suggestions)

        self.console.print(
            Panel("\n".join(lines), title=f"{emoji} {title}", border_style="red")
        )
        self.logger.debug("Handled %s: %s", type(error).__name__, error)

        if self.verbose and show_traceback:
            self.console.print_exception()


_error_handler: Optional[ErrorHandler] = None


def set_error_handler(handler: Optional[ErrorHandler]) -> None:
    """Install the process-wide error handler."""
    global _error_handler
    _error_handler = handler


def get_error_handler() -> Optional[ErrorHandler]:
    """Return the process-wide error handler, if any."""
    return _error_handler


def handle_error(error: BaseException, context: Optional[ErrorContext] = None) -> None:
    """Route an error to the global handler, falling back to logging."""
    if _error_handler is None:
        logging.error("%s: %s", type(error).__name__, error)
        return
    _error_handler.handle_error(error, context=context)
