"""Typed content blocks.

Event content arrives from the block editor as ``{"blocks": [{"id",
"type", "data"}, ...]}``.  Each entry is parsed into one variant below;
anything we don't interpret becomes an UnknownBlock that carries its
payload untouched, so ``to_dict`` reproduces what the editor sent.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union


def _freeze(data: Any) -> dict[str, Any]:
    return dict(data) if isinstance(data, Mapping) else {}


@dataclass(frozen=True, slots=True)
class HeaderBlock:
    id: str | None
    text: str
    level: int | None = None
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    type = "header"


@dataclass(frozen=True, slots=True)
class ImageBlock:
    id: str | None
    url: str | None
    caption: str | None = None
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    type = "image"


@dataclass(frozen=True, slots=True)
class PackageBlock:
    """The sellable-package form.  Interpreted by content.parser."""

    id: str | None
    data: dict[str, Any] = field(default_factory=dict)

    type = "package"


@dataclass(frozen=True, slots=True)
class UnknownBlock:
    id: str | None
    block_type: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.block_type


Block = Union[HeaderBlock, ImageBlock, PackageBlock, UnknownBlock]


def parse_block(raw: Any) -> Block:
    """Parse one editor block.  Never raises."""
    if not isinstance(raw, Mapping):
        return UnknownBlock(id=None, block_type="", data={})

    block_id = raw.get("id")
    block_id = str(block_id) if block_id is not None else None
    block_type = raw.get("type")
    block_type = block_type if isinstance(block_type, str) else ""
    data = _freeze(raw.get("data"))

    if block_type == "header":
        text = data.get("text")
        level = data.get("level")
        return HeaderBlock(
            id=block_id,
            text=str(text) if text is not None else "",
            level=level if isinstance(level, int) and not isinstance(level, bool) else None,
            data=data,
        )
    if block_type == "image":
        file = data.get("file")
        url = file.get("url") if isinstance(file, Mapping) else None
        caption = data.get("caption")
        return ImageBlock(
            id=block_id,
            url=str(url) if url is not None else None,
            caption=str(caption) if caption is not None else None,
            data=data,
        )
    if block_type == "package":
        return PackageBlock(id=block_id, data=data)
    return UnknownBlock(id=block_id, block_type=block_type, data=data)


def parse_blocks(raw_blocks: Iterable[Any] | None) -> tuple[Block, ...]:
    if raw_blocks is None or isinstance(raw_blocks, (str, bytes, Mapping)):
        return ()
    return tuple(parse_block(b) for b in raw_blocks)


def block_to_dict(block: Block) -> dict[str, Any]:
    out: dict[str, Any] = {"type": block.type, "data": dict(block.data)}
    if block.id is not None:
        out = {"id": block.id, **out}
    return out


def blocks_to_dicts(blocks: Iterable[Block]) -> list[dict[str, Any]]:
    return [block_to_dict(b) for b in blocks]
