"""
activity_stream.engine.plugins — Implementation References
===========================================================

Filters and upgraders are named in configuration as
``"package.module:attribute"`` strings.  This module turns such a
reference into the object it names.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from activity_stream.errors import ConfigurationError

logger = logging.getLogger(__name__)


def resolve_reference(reference: Any) -> Any:
    """Return the object named by *reference*.

    Non-string references (classes, functions) are returned unchanged so
    configuration built in code can skip the import step.

    Raises
    ------
    ConfigurationError
        If the reference is malformed, the module cannot be imported or
        the attribute does not exist.
    """
    if not isinstance(reference, str):
        if not callable(reference):
            raise ConfigurationError(f"Implementation is not callable: {reference!r}")
        return reference

    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigurationError(
            f"Malformed implementation reference {reference!r} "
            "(expected 'package.module:attribute')"
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(
            f"Cannot import module {module_name!r} for {reference!r}: {exc}"
        ) from exc

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigurationError(
                f"Module {module_name!r} has no attribute {attr_path!r}"
            ) from exc

    logger.debug("Resolved implementation %s → %r", reference, target)
    return target
