"""Print-quality PDF export for projector service and site reports."""

__version__ = "0.1.0"
