from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Sequence


class ValueTable:
    """
    Lazily populated tabular action-value function Q[state_key][action].

    Rows are created on first visit with every action set to 0.0 (starting from all zeros is the standard
    choice for tabular control). A row is built completely before it is stored, so a partially initialized
    row is never observable. Entries are only overwritten through set() or wiped all at once with clear().

    :param actions: The fixed, ordered action set of the environment.
        :type actions: Sequence[str]
    """

    def __init__(self, actions: Sequence[str]):
        self.actions = tuple(actions)
        if not self.actions:
            raise ValueError("actions must not be empty")
        if len(set(self.actions)) != len(self.actions):
            raise ValueError(f"actions must be unique, got {self.actions}")

        self._rows: dict[str, dict[str, float]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._rows))

    def get_row(self, key: str) -> dict[str, float]:
        """
        Return the row for key, creating it with zeros on first visit.

        :param key: State key.
            :type key: str

        :return: Mapping action -> value (the live row).
            :rtype: dict[str, float]
        """
        row = self._rows.get(key)
        if row is None:
            row = {a: 0.0 for a in self.actions}
            self._rows[key] = row
        return row

    def peek_row(self, key: str) -> Mapping[str, float] | None:
        """
        Read-only view of a row, or None if the state was never visited. Never creates a row.
        """
        row = self._rows.get(key)
        return None if row is None else MappingProxyType(row)

    def get(self, key: str, action: str) -> float:
        """
        Value of (key, action), defaulting to 0.0 for unseen pairs. Never mutates the table.
        """
        row = self._rows.get(key)
        if row is None:
            return 0.0
        return float(row.get(action, 0.0))

    def set(self, key: str, action: str, value: float) -> None:
        if action not in self.actions:
            raise ValueError(f"Unknown action {action!r}. Must be one of {self.actions}.")
        self.get_row(key)[action] = float(value)

    def clear(self) -> None:
        self._rows.clear()

    def as_dict(self) -> dict[str, dict[str, float]]:
        """
        Copy of the whole table, handy for rendering heatmaps or arrows.

        :return: {state_key: {action: value}}
            :rtype: dict[str, dict[str, float]]
        """
        return {k: dict(row) for k, row in self._rows.items()}
