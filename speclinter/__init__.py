"""SpecLinter: turn natural-language specs into graded, testable tasks over MCP."""

__version__ = "0.1.0"
