import re

KEY_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
"""Identifiers are single tokens: no leading digit, whitespace or punctuation."""

INVOKE_KEY = "#"
"""Reserved name for one-off resolvers built by ``Container.invoke``. Never a valid key."""

CONTEXT_PARAMETER_NAME = "self"
"""Leading parameter name that marks a function as accepting an invocation context."""

DEFAULT_IMPORT_EXCLUDE: tuple[str, ...] = ("**/__pycache__/**",)

DEPENDENCIES_ATTR = "__diminish_dependencies__"
