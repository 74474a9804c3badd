"""Administrative console for the clinical-records HTTP API."""

__version__ = "0.1.0"
