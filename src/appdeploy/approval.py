"""Operator confirmation gate for irreversible actions.

Creating a web app starts billing and deleting one destroys it, so both ask the
operator before doing anything unless the caller passes force.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

logger = logging.getLogger(__name__)

Prompter = Callable[[str], bool]


def click_prompt(message: str) -> bool:
    """Ask on the terminal; defaults to No."""
    return click.confirm(message, default=False)


class ConfirmationGate:
    """Asks the operator to confirm an action.

    Declining is not an error: callers get False and return without side effects.
    """

    def __init__(self, prompter: Prompter | None = None) -> None:
        self._prompter = prompter or click_prompt

    def confirm(self, action: str, target: str, *, force: bool = False) -> bool:
        """Return True when the action may proceed.

        Args:
            action: Verb shown to the operator (e.g. "Create", "Remove").
            target: Resource the action applies to.
            force: Skip the prompt and proceed.
        """
        if force:
            logger.info("%s %s: confirmation bypassed", action, target)
            return True

        approved = self._prompter(f"{action} {target}?")
        if not approved:
            logger.info("%s %s declined by operator", action, target)
        return approved
