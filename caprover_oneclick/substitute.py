"""Literal substitution of resolved variables into template source text."""
from __future__ import annotations

import logging
from typing import Mapping

logger = logging.getLogger(__name__)


def substitute(raw_text: str, variables: Mapping[str, str]) -> str:
    """Replace every occurrence of each variable id with its value.

    Replacement is sequential in the mapping's iteration order, so a value
    inserted by an earlier pair is itself subject to later pairs.
    """
    text = raw_text
    for variable_id, value in variables.items():
        if variable_id:
            text = text.replace(variable_id, value)
    logger.debug("Substituted %d variables into template", len(variables))
    return text
