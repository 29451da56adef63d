"""Transaction execution results as returned by the signer service.

The payload follows the Sui JSON-RPC ``SuiTransactionBlockResponse`` shape
with ``showEffects`` and ``showObjectChanges`` enabled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObjectChange:
    change_type: str
    object_type: str | None = None
    object_id: str | None = None


@dataclass(frozen=True)
class ExecutionResult:
    digest: str
    status: str = "success"
    error: str | None = None
    object_changes: list[ObjectChange] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> ExecutionResult:
        """Parse a SuiTransactionBlockResponse-like dict."""
        effects = data.get("effects") or {}
        status_block = effects.get("status") or {}
        changes = [
            ObjectChange(
                change_type=str(change.get("type", "")),
                object_type=change.get("objectType"),
                object_id=change.get("objectId"),
            )
            for change in data.get("objectChanges") or []
            if isinstance(change, dict)
        ]
        return cls(
            digest=str(data.get("digest", "")),
            status=str(status_block.get("status", "unknown")),
            error=status_block.get("error"),
            object_changes=changes,
        )


def find_created_object(result: ExecutionResult, type_suffix: str) -> str | None:
    """Return the id of the first created object whose type ends with ``type_suffix``.

    Generic parameters (``Foo<T>``) are ignored when matching.
    """
    for change in result.object_changes:
        if change.change_type != "created" or not change.object_type or not change.object_id:
            continue
        base_type = change.object_type.split("<", 1)[0]
        if base_type.endswith(type_suffix):
            return change.object_id
    return None
