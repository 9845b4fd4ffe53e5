from __future__ import annotations

import logging
from typing import Hashable, Optional

logger = logging.getLogger(__name__)


class EditToken:
    """
    Shared "who is editing" cell.

    Several independent property lists hold the same token so at most one
    field on the page is in edit mode. Starting an edit elsewhere takes the
    token over; releasing only works for the current owner.
    """

    def __init__(self) -> None:
        self._active_key: Optional[Hashable] = None

    @property
    def active_key(self) -> Optional[Hashable]:
        return self._active_key

    def acquire(self, key: Hashable) -> Optional[Hashable]:
        """Make `key` the active edit. Returns the key that lost the token, if any."""
        previous = self._active_key
        self._active_key = key
        if previous is not None and previous != key:
            logger.debug("Edit token moved", extra={"from": str(previous), "to": str(key)})
            return previous
        return None

    def release(self, key: Hashable) -> bool:
        """Release on blur/cancel/save. A stale owner releasing is a no-op."""
        if self._active_key == key:
            self._active_key = None
            return True
        return False

    def is_editing(self, key: Hashable) -> bool:
        return key is not None and self._active_key == key


class EditablePropertyList:
    """
    A list of editable fields. Built without a shared token it gets a private
    one, so edits in it are only exclusive within the list.
    """

    def __init__(self, field_keys, token: Optional[EditToken] = None):
        self.field_keys = list(field_keys)
        self.token = token if token is not None else EditToken()

    def start_edit(self, field_key: Hashable) -> bool:
        # None-keyed fields are read-only
        if field_key is None or field_key not in self.field_keys:
            return False
        self.token.acquire(field_key)
        return True

    def stop_edit(self, field_key: Hashable) -> bool:
        return self.token.release(field_key)

    def editing_key(self) -> Optional[Hashable]:
        key = self.token.active_key
        return key if key in self.field_keys else None
