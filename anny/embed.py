"""A chainable builder for Discord message embeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .text import format_text


@dataclass
class EmbedAuthor:
    name: str
    icon: str = ""
    url: str = ""


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class EmbedFooter:
    text: str
    icon: str = ""


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value}


@dataclass
class Embed:
    """Embed contents; every ``set_``/``add_`` method returns the embed itself."""

    title: str = ""
    description: str = ""
    url: str = ""
    color: int = 0
    timestamp: datetime | None = None
    author: EmbedAuthor | None = None
    image: str = ""
    thumbnail: str = ""
    footer: EmbedFooter | None = None
    fields: list[EmbedField] = field(default_factory=list)

    def set_author(self, name: str, icon: str = "", url: str = "") -> Embed:
        self.author = EmbedAuthor(name, icon, url)
        return self

    def set_url(self, url: str) -> Embed:
        self.url = url
        return self

    def set_title(self, title: str, *args: Any) -> Embed:
        self.title = format_text(title, *args)
        return self

    def set_description(self, description: str, *args: Any) -> Embed:
        self.description = format_text(description, *args)
        return self

    def set_color(self, color: int) -> Embed:
        self.color = color
        return self

    def set_image(self, url: str) -> Embed:
        self.image = url
        return self

    def set_thumbnail(self, url: str) -> Embed:
        self.thumbnail = url
        return self

    def set_timestamp(self, moment: datetime) -> Embed:
        self.timestamp = moment
        return self

    def add_field(self, name: Any, value: Any, inline: bool = False) -> Embed:
        self.fields.append(EmbedField(format_text("%v", name), format_text("%v", value), inline))
        return self

    def set_field(self, index: int, name: str, value: str, inline: bool = False) -> Embed:
        """Replace the field at ``index``; an index past the end leaves the embed as is."""
        if index > len(self.fields):
            return self
        if index < 0 or index == len(self.fields):
            raise IndexError(f"field index {index} out of range")
        self.fields[index] = EmbedField(name, value, inline)
        return self

    def set_footer(self, text: str, icon: str = "") -> Embed:
        self.footer = EmbedFooter(text, icon)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Return the embed as Discord API JSON, leaving out empty parts."""
        stamp = None
        if self.timestamp is not None:
            moment = self.timestamp if self.timestamp.tzinfo else self.timestamp.astimezone()
            stamp = moment.isoformat(timespec="seconds")
            if stamp.endswith("+00:00"):
                stamp = stamp[:-6] + "Z"
        data = _compact({
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "timestamp": stamp,
            "color": self.color,
            "image": {"url": self.image} if self.image else None,
            "thumbnail": {"url": self.thumbnail} if self.thumbnail else None,
            "fields": [_compact(vars(entry)) | {"name": entry.name, "value": entry.value}
                       for entry in self.fields],
        })
        if self.footer is not None:
            data["footer"] = {"text": self.footer.text} | _compact({"icon_url": self.footer.icon})
        if self.author is not None:
            data["author"] = {"name": self.author.name} | _compact(
                {"url": self.author.url, "icon_url": self.author.icon})
        return data