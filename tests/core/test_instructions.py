from __future__ import annotations

import msgpack
import pytest

from scenecanvas.core.builders import polygon
from scenecanvas.core.compiler import compile_element
from scenecanvas.core.errors import MalformedInstruction
from scenecanvas.core.instructions import (
    Call,
    SetProperty,
    from_wire,
    pack_frame,
    to_wire,
    unpack_frame,
)


def test_wire_shapes() -> None:
    assert to_wire(SetProperty("fillStyle", "red")) == {
        "set": "fillStyle",
        "value": "red",
    }
    assert to_wire(Call("setLineDash", ((5, 15),))) == {
        "call": "setLineDash",
        "args": [[5, 15]],
    }
    assert from_wire({"call": "beginPath"}) == Call("beginPath")
    assert from_wire({"call": "setLineDash", "args": [[]]}) == Call(
        "setLineDash", ((),)
    )


@pytest.mark.parametrize(
    "data",
    [
        ["set", "x"],
        {"set": 3, "value": 1},
        {"set": "font"},
        {"call": "fill", "args": "xy"},
        {"value": 1},
    ],
)
def test_from_wire_rejects_bad_shapes(data: object) -> None:
    with pytest.raises(MalformedInstruction):
        from_wire(data)


def test_frame_survives_msgpack() -> None:
    el = polygon(points=[(1, 1), (30, 1), (15, 10)], draw=[{"fill": "red"}])
    frame = compile_element(el)
    assert unpack_frame(pack_frame(frame)) == frame


def test_opaque_handles_are_marked() -> None:
    handle = object()
    frame = unpack_frame(pack_frame([Call("drawImage", (handle, 1, 2))]))
    marker = frame[0].args[0]
    assert marker == {"__opaque__": repr(handle)}


def test_unpack_rejects_garbage() -> None:
    with pytest.raises(MalformedInstruction):
        unpack_frame(msgpack.packb({"call": "fill"}))
    with pytest.raises(MalformedInstruction):
        unpack_frame(b"\x93\x01")
