"""
Registry of group custom fields that administrators may write.
"""

from collections.abc import Iterable


class EditableFieldRegistry:
    """
    The set of editable group custom field names. Registrations can change at
    runtime, so consumers should call `allowed` for every request rather than
    holding on to the result.

    An empty registry allows nothing.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: set[str] = set()

        for name in names:
            self.register(name)

    def register(self, name: str):
        name = str(name).strip()

        if not name:
            raise ValueError("Custom field names must not be empty")

        self._names.add(name)

    def unregister(self, name: str):
        self._names.discard(str(name).strip())

    def reset(self):
        self._names.clear()

    def allowed(self) -> frozenset[str]:
        return frozenset(self._names)
