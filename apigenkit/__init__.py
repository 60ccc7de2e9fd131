"""Naming rules, URI template parsing, template substitution and formatted output for generated API projects."""

__version__ = "0.1.0"

__all__ = ["cli", "fileutil", "naming", "rustfmt", "spec", "templating", "uri_template"]