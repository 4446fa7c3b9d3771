"""Change commands applied to the state tree.

Feed layers translate exchange messages into batches of these commands and
hand them to `PatchStore.apply_changes`. Commands may be built directly or
parsed from plain dicts of the same shape:

    {"type": "update", "path": "bybit.public.latency", "value": 12}
    {"type": "removeArrayElement", "path": "bybit.private.main.orders", "index": 0}
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

from market_sync.store.paths import Path, PathLike, coerce_path

CommandPath = Annotated[Path, BeforeValidator(coerce_path)]


class Update(BaseModel):
    """Replace the value at `path`, creating missing intermediate containers.

    This is a structural replace, not a merge: whatever was at `path` before
    is discarded. The value object is stored as given (not copied), so the
    producer hands over ownership.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["update"] = "update"
    path: CommandPath
    value: Any


class RemoveArrayElement(BaseModel):
    """Remove the element at position `index` of the list at `path`.

    Out-of-range indices are a no-op: feeds race deletions against late
    updates, and a removal that lost the race has nothing left to remove.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["removeArrayElement"] = "removeArrayElement"
    path: CommandPath
    index: int


ChangeCommand = Annotated[Update | RemoveArrayElement, Field(discriminator="type")]

_command_adapter: TypeAdapter[Update | RemoveArrayElement] = TypeAdapter(ChangeCommand)


def update(path: PathLike, value: Any) -> Update:
    return Update(path=path, value=value)


def remove_array_element(path: PathLike, index: int) -> RemoveArrayElement:
    return RemoveArrayElement(path=path, index=index)


def to_command(raw: Update | RemoveArrayElement | Mapping[str, Any]) -> Update | RemoveArrayElement:
    """Accept a command model or its dict form.

    Raises:
        pydantic.ValidationError: If a dict doesn't describe a valid command
    """
    if isinstance(raw, (Update, RemoveArrayElement)):
        return raw
    return _command_adapter.validate_python(raw)
