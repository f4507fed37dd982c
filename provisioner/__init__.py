"""Python Provisioner — install CPython runtimes for a tool-version manager."""

__version__ = "0.1.0"
