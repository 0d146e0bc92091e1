"""Base models and common types for the report export pipeline."""

from enum import Enum

from pydantic import BaseModel


class ReportKind(str, Enum):
    """Document kinds produced by the pipeline."""

    SERVICE = "service"
    SITE = "site"


class ExportOutcome(str, Enum):
    """How an export finished."""

    SAVED = "saved"  # paginated artifact handed to the save target
    PRINTED = "printed"  # fallback document handed to the print facility


class ExportChoice(str, Enum):
    """User decision after a primary-path failure."""

    RETRY = "retry"
    FALLBACK = "fallback"
    ABORT = "abort"


class BaseViewModel(BaseModel):
    """Base class for the pipeline's value models."""

    class Config:
        from_attributes = True
        validate_assignment = True
