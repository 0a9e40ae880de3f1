"""Persistence adapter boundary.

A field persists its answer through exactly one named mutation per answer
type, or through the remove mutation when the value is empty. Adapters
execute a ``MutationOperation`` with GraphQL-style variables and return the
answer payload found at ``result_path`` of the response. Adapters also own
the translation between global (relay style) ids and raw backend ids.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from fieldengine.models.question_kind import VALUE_KEYS, AnswerType

_ANSWER_FIELDS = "id __typename question {{ slug }} ... on {type} {{ {value_key} }}"


@dataclass(frozen=True)
class MutationOperation:
    name: str
    query: str
    answer_type: Optional[AnswerType] = None

    @property
    def result_path(self) -> str:
        return f"{self.name}.answer"


def _save_mutation(answer_type: AnswerType) -> MutationOperation:
    name = f"saveDocument{answer_type.value}"
    selection = _ANSWER_FIELDS.format(type=answer_type.value, value_key=VALUE_KEYS[answer_type])
    query = (
        f"mutation {name[0].upper()}{name[1:]}($input: {name[0].upper()}{name[1:]}Input!) "
        f"{{ {name}(input: $input) {{ answer {{ {selection} }} clientMutationId }} }}"
    )
    return MutationOperation(name=name, query=query, answer_type=answer_type)


# One save mutation per persistable answer type. Form answers are never saved
# directly; their values live in the child document's own answers.
SAVE_OPERATIONS: Mapping[AnswerType, Optional[MutationOperation]] = MappingProxyType(
    {
        AnswerType.STRING: _save_mutation(AnswerType.STRING),
        AnswerType.INTEGER: _save_mutation(AnswerType.INTEGER),
        AnswerType.FLOAT: _save_mutation(AnswerType.FLOAT),
        AnswerType.LIST: _save_mutation(AnswerType.LIST),
        AnswerType.FILE: _save_mutation(AnswerType.FILE),
        AnswerType.DATE: _save_mutation(AnswerType.DATE),
        AnswerType.TABLE: _save_mutation(AnswerType.TABLE),
        AnswerType.FORM: None,
    }
)

REMOVE_ANSWER = MutationOperation(
    name="removeAnswer",
    query=(
        "mutation RemoveAnswer($input: RemoveAnswerInput!) "
        "{ removeAnswer(input: $input) { answer { id __typename } clientMutationId } }"
    ),
)


def encode_id(type_name: str, raw_id: str) -> str:
    """Encode a raw backend id into a global id (base64 of ``Type:raw``)."""
    return base64.b64encode(f"{type_name}:{raw_id}".encode("utf-8")).decode("ascii")


def decode_id(global_id: Optional[str]) -> Optional[str]:
    """Return the raw backend id of a global id.

    Ids that are not base64 encoded ``Type:raw`` pairs are returned unchanged.
    """
    if global_id is None:
        return None
    try:
        decoded = base64.b64decode(str(global_id), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return global_id
    type_name, sep, raw = decoded.partition(":")
    if not sep or not type_name.isidentifier() or not raw:
        return global_id
    return raw


@runtime_checkable
class PersistenceAdapter(Protocol):
    async def mutate(
        self, operation: MutationOperation, variables: Dict[str, Any], result_path: str
    ) -> Any:  # pragma: no cover - protocol
        ...

    def encode_id(self, type_name: str, raw_id: str) -> str:  # pragma: no cover - protocol
        ...

    def decode_id(self, global_id: Optional[str]) -> Optional[str]:  # pragma: no cover - protocol
        ...


def extract_path(data: Any, result_path: str) -> Any:
    """Follow a dotted ``result_path`` into nested dicts (missing keys give None)."""
    cur = data
    for key in result_path.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


__all__ = [
    "MutationOperation",
    "SAVE_OPERATIONS",
    "REMOVE_ANSWER",
    "PersistenceAdapter",
    "encode_id",
    "decode_id",
    "extract_path",
]
