import re
from dataclasses import dataclass

SHORTCODE_KINDS = ("field", "calc", "lookup")

SHORTCODE_PATTERN = re.compile(r"\[(field|calc|lookup):([^\]]+)\]")
ANY_BRACKET_PATTERN = re.compile(r"\[([^\[\]:]*):([^\]]*)\]")
NAME_PATTERN = re.compile(r"^[\w\- .]+$")
MAX_NAME_LENGTH = 100


@dataclass(frozen=True)
class Shortcode:
    kind: str
    name: str
    start: int
    end: int

    @property
    def original(self) -> str:
        return f"[{self.kind}:{self.name}]"


def find_shortcodes(text: str) -> list[Shortcode]:
    return [
        Shortcode(kind=m.group(1), name=m.group(2).strip(), start=m.start(), end=m.end())
        for m in SHORTCODE_PATTERN.finditer(text)
    ]


def normalize_name(name: str) -> str:
    """Formula and lookup keys compare case-insensitively, spaces and hyphens alike."""
    return re.sub(r"\s+", "-", name.strip().lower())


def make_shortcode(kind: str, name: str) -> str:
    if kind not in SHORTCODE_KINDS:
        raise ValueError(f"Unknown shortcode kind: {kind}")
    if kind == "field":
        return f"[field:{name}]"
    return f"[{kind}:{normalize_name(name)}]"
