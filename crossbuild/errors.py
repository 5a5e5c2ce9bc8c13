"""
Errors — the three failure tiers of a compile run.

  1. Configuration errors (ConfigurationError and subclasses) are raised
     before any subprocess is spawned and abort the run.
  2. Per-target build failures never surface as exceptions; they become
     failed CompilationResult entries.
  3. Orchestration errors (OutputDirectoryError) abort the run after
     configuration succeeded.
"""


class ConfigurationError(ValueError):
    """Invalid or incomplete compile configuration."""


class InvalidEntry(ConfigurationError):
    """Entry path missing, blank, or not on disk."""


class InvalidConcurrency(ConfigurationError):
    """Concurrency outside [1, MAX_CONCURRENCY]."""


class NoTargetsSelected(ConfigurationError):
    """No valid target given and target selection was cancelled."""


class UnsupportedHost(ConfigurationError):
    """The invoking host has no matching catalog target."""


class SelectionCancelled(Exception):
    """Raised by a TargetSelector when it cannot produce targets."""


class OutputDirectoryError(RuntimeError):
    """The output directory could not be created."""
