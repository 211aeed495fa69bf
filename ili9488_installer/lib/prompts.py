from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UserAborted(Exception):
    """The operator declined a confirmation prompt."""


def confirm(
    question: str,
    *,
    assume_yes: bool = False,
    input_fn: Optional[Callable[[str], str]] = None,
) -> bool:
    """Ask a Y/N question. Only ``Y`` or ``y`` counts as yes."""

    if assume_yes:
        logger.info("%s -> yes (assumed)", question)
        return True
    try:
        answer = (input_fn or input)(f"{question} (Y/N): ")
    except EOFError:
        answer = ""
    accepted = answer.strip() in {"Y", "y"}
    logger.info("%s -> %s", question, "yes" if accepted else "no")
    return accepted


def require_confirmation(question: str, abort_message: str, *, assume_yes: bool = False) -> None:
    if not confirm(question, assume_yes=assume_yes):
        raise UserAborted(abort_message)
