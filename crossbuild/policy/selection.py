"""
Selection — where targets come from when none were given explicitly.

The resolver only talks to the narrow ``TargetSelector`` interface:

  - ExplicitSelector: a canned list (CLI flags, tests, CI).
  - PromptSelector:   asks the user on a terminal.

Both raise ``SelectionCancelled`` when they cannot produce a target list.
"""
import logging
import re
import sys
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TextIO

from crossbuild.core.catalog import (
    SUPPORTED_PLATFORMS,
    current_target,
    format_target_name,
    is_valid_target,
    targets_by_platform,
)
from crossbuild.errors import SelectionCancelled, UnsupportedHost

logger = logging.getLogger(__name__)


class TargetSelector(ABC):
    """Capability to obtain a target list."""

    @abstractmethod
    def select(self) -> List[str]:
        """Return a non-empty list of targets or raise SelectionCancelled."""


class ExplicitSelector(TargetSelector):
    def __init__(self, targets: Sequence[str] = ()):
        self.targets = list(targets)

    def select(self) -> List[str]:
        if not self.targets:
            raise SelectionCancelled("No targets available to select")
        return list(self.targets)


class PromptSelector(TargetSelector):
    """
    Line-based terminal picker.

    Lists the catalog grouped by platform with a number per target and
    accepts numbers or target ids separated by commas or spaces.  EOF,
    Ctrl-C, or an empty answer cancel the selection.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
        max_attempts: int = 3,
    ):
        self.input_fn = input_fn
        self.output = output if output is not None else sys.stderr
        self.max_attempts = max_attempts

    def _choices(self) -> List[str]:
        choices: List[str] = []
        for plat in SUPPORTED_PLATFORMS:
            choices.extend(targets_by_platform(plat))
        return choices

    def _render(self, choices: List[str]) -> None:
        try:
            current = current_target()
        except UnsupportedHost:
            current = None

        index = 1
        for plat in SUPPORTED_PLATFORMS:
            print(plat.capitalize(), file=self.output)
            for target in targets_by_platform(plat):
                print(f"  {index:>2}) {format_target_name(target, current)}", file=self.output)
                index += 1

    def _parse(self, answer: str, choices: List[str]) -> Optional[List[str]]:
        """Map an answer to targets; None when any token is invalid."""
        picked: List[str] = []
        for token in re.split(r"[,\s]+", answer.strip()):
            if not token:
                continue
            if token.isdigit() and 1 <= int(token) <= len(choices):
                target = choices[int(token) - 1]
            elif is_valid_target(token):
                target = token
            else:
                return None
            if target not in picked:
                picked.append(target)
        return picked

    def select(self) -> List[str]:
        choices = self._choices()
        self._render(choices)

        for _ in range(self.max_attempts):
            # Prompt goes with the menu; input() would print it to stdout.
            print("Select targets to compile for: ", end="", file=self.output, flush=True)
            try:
                answer = self.input_fn("")
            except (EOFError, KeyboardInterrupt):
                raise SelectionCancelled("At least one target has to be provided!")

            if not answer.strip():
                raise SelectionCancelled("At least one target has to be provided!")

            picked = self._parse(answer, choices)
            if picked:
                logger.debug("Selected targets: %s", picked)
                return picked
            print(f"Invalid selection: {answer.strip()!r}", file=self.output)

        raise SelectionCancelled("No valid selection after %d attempts" % self.max_attempts)
