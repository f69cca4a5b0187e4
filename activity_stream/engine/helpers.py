"""
activity_stream.engine.helpers — Actor & Object Identifiers
============================================================

Activities reference users and documents through prefixed string ids:

* ``user:<username>``
* ``doc:<repository>:<document id>``

Anything else is stored verbatim and treated as an opaque string.
"""

from __future__ import annotations

USER_PREFIX = "user:"
DOCUMENT_PREFIX = "doc:"
SEPARATOR = ":"


def create_user_activity_object(username: str) -> str:
    return USER_PREFIX + username


def is_user(activity_object: str | None) -> bool:
    return bool(activity_object) and activity_object.startswith(USER_PREFIX)


def get_username(activity_object: str) -> str:
    """``user:bob`` → ``bob``.  Raises ValueError for non-user ids."""
    if not is_user(activity_object):
        raise ValueError(f"Not a user activity object: {activity_object!r}")
    return activity_object[len(USER_PREFIX):]


def create_document_activity_object(repository_name: str, document_id: str) -> str:
    return f"{DOCUMENT_PREFIX}{repository_name}{SEPARATOR}{document_id}"


def is_document(activity_object: str | None) -> bool:
    return bool(activity_object) and activity_object.startswith(DOCUMENT_PREFIX)


def _document_parts(activity_object: str) -> tuple[str, str]:
    if not is_document(activity_object):
        raise ValueError(f"Not a document activity object: {activity_object!r}")
    repository, sep, document_id = activity_object[len(DOCUMENT_PREFIX):].partition(SEPARATOR)
    if not sep or not repository or not document_id:
        raise ValueError(f"Malformed document activity object: {activity_object!r}")
    return repository, document_id


def get_repository_name(activity_object: str) -> str:
    return _document_parts(activity_object)[0]


def get_document_id(activity_object: str) -> str:
    return _document_parts(activity_object)[1]
