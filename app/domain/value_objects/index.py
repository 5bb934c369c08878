"""Index declaration value object."""

from dataclasses import dataclass, field
from typing import Any


def generate_index_name(fields: dict[str, int]) -> str:
    """Derive an index name from its fields, e.g. {"a": 1, "b": -1} -> "a_1_b_-1"."""
    return "_".join(f"{name}_{direction}" for name, direction in fields.items())


@dataclass(frozen=True)
class IndexDeclaration:
    """One declared index: ordered field -> direction (1 asc, -1 desc) plus options.

    ``options["name"]`` overrides the derived name.
    """

    fields: dict[str, int]
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError("Index requires at least one field")
        for name, direction in self.fields.items():
            if direction not in (1, -1):
                raise ValueError(f"Index direction for '{name}' must be 1 or -1")

    @property
    def name(self) -> str:
        return self.options.get("name") or generate_index_name(self.fields)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndexDeclaration":
        """Build from a stored/wire ``{fields, options}`` mapping. Raises ValueError if malformed."""
        if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
            raise ValueError("Index must be an object with a 'fields' mapping")
        return cls(
            fields={str(k): int(v) for k, v in data["fields"].items()},
            options=dict(data.get("options") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"fields": dict(self.fields), "options": dict(self.options)}
