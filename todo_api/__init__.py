"""In-memory task CRUD service over HTTP/JSON."""

__version__ = "0.1.0"
