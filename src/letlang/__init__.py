"""letlang: parser and diagnostics for a small let/lambda expression language."""

__version__ = "0.1.0"

from letlang.parser import ParseResult, parse  # noqa: E402

__all__ = ["ParseResult", "__version__", "parse"]
