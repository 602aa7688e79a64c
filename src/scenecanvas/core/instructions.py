"""Drawing instructions and their wire form.

Instructions are plain data: a property write (:class:`SetProperty`) or a
method call (:class:`Call`) against a 2D drawing surface, named with the
canvas vocabulary (``fillStyle``, ``fillRect``, ...). Lists of them are what
the compiler produces and the player consumes.

Wire form mirrors the dict shape used by scene tooling::

    {"set": "fillStyle", "value": "red"}
    {"call": "fillRect", "args": [0, 0, 10, 10]}

``pack_frame``/``unpack_frame`` serialize a whole frame with msgpack.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple, Union

import msgpack

from scenecanvas.core.errors import MalformedInstruction

__all__ = [
    "SetProperty",
    "Call",
    "Instruction",
    "SAVE",
    "RESTORE",
    "to_wire",
    "from_wire",
    "pack_frame",
    "unpack_frame",
]


@dataclass(frozen=True, slots=True)
class SetProperty:
    name: str
    value: Any


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: Tuple[Any, ...] = ()


Instruction = Union[SetProperty, Call]

SAVE = Call("save")
RESTORE = Call("restore")

_OPAQUE_KEY = "__opaque__"


def to_wire(ins: Instruction) -> Dict[str, Any]:
    """Return the dict form of an instruction."""
    if isinstance(ins, SetProperty):
        return {"set": ins.name, "value": _wire_value(ins.value)}
    if isinstance(ins, Call):
        return {"call": ins.name, "args": [_wire_value(a) for a in ins.args]}
    raise MalformedInstruction(f"not an instruction: {ins!r}")


def _wire_value(v: Any) -> Any:
    if isinstance(v, tuple):
        return [_wire_value(x) for x in v]
    return v


def _freeze(v: Any) -> Any:
    if isinstance(v, list):
        return tuple(_freeze(x) for x in v)
    return v


def from_wire(data: Any) -> Instruction:
    """Decode the dict form produced by :func:`to_wire`."""
    if not isinstance(data, dict):
        raise MalformedInstruction(f"expected a mapping, got {type(data).__name__}")
    if "set" in data:
        name = data["set"]
        if not isinstance(name, str) or "value" not in data:
            raise MalformedInstruction(f"bad property instruction: {data!r}")
        return SetProperty(name, _freeze(data["value"]))
    if "call" in data:
        name = data["call"]
        args = data.get("args", [])
        if not isinstance(name, str) or not isinstance(args, (list, tuple)):
            raise MalformedInstruction(f"bad call instruction: {data!r}")
        return Call(name, tuple(_freeze(a) for a in args))
    raise MalformedInstruction(f"instruction has neither 'set' nor 'call': {data!r}")


def _pack_default(obj: Any) -> Any:
    # Image handles and other surface objects have no portable encoding.
    return {_OPAQUE_KEY: repr(obj)}


def pack_frame(instructions: Iterable[Instruction]) -> bytes:
    """Serialize one frame's instructions using msgpack."""
    payload = [to_wire(ins) for ins in instructions]
    return msgpack.packb(payload, use_bin_type=True, default=_pack_default)


def unpack_frame(b: bytes) -> List[Instruction]:
    """Deserialize a frame produced by :func:`pack_frame`."""
    try:
        payload = msgpack.unpackb(b, raw=False, strict_map_key=False)
    except ValueError as e:
        raise MalformedInstruction(f"undecodable frame: {e}") from e
    if not isinstance(payload, list):
        raise MalformedInstruction("frame payload must be a list")
    return [from_wire(d) for d in payload]
