"""
crossbuild — cross-platform standalone executable builder.

Compiles program entry points into one executable per target platform by
driving an external native build tool, several targets at a time.
"""

__version__ = "0.1.0"
TOOL_NAME = "crossbuild"
RECEIPT_VERSION = "0.1"

# Upper bound on concurrent build-tool subprocesses.
MAX_CONCURRENCY = 16
