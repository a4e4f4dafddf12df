"""
Optional-field rendering for prompt templates.

A prompt often needs a few lines that only make sense when a sparse record
carries certain values (a LinkedIn link, a visa status, a list of skills).
Each such line is a ConditionalBlock; render_optional_blocks keeps the blocks
whose required fields are present and fills them in.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

Formatter = Callable[[Any], str]

def is_present(value: Any) -> bool:
    """None, blank strings and empty collections count as absent."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True

def bullet_list(items: Iterable[Any]) -> str:
    """Render items as '- item' lines."""
    return "\n".join(f"- {item}" for item in items if is_present(item))

@dataclass(frozen=True)
class ConditionalBlock:
    """A template line that is rendered only when its fields are present."""
    template: str
    requires: Tuple[str, ...] = ()
    formatters: Dict[str, Formatter] = field(default_factory=dict)

    def applies_to(self, record: Mapping[str, Any]) -> bool:
        return all(is_present(record.get(name)) for name in self.requires)

    def render(self, record: Mapping[str, Any]) -> str:
        values = {}
        for name, value in record.items():
            if not is_present(value):
                values[name] = ""
            elif name in self.formatters:
                values[name] = self.formatters[name](value)
            else:
                values[name] = value
        return self.template.format_map(_MissingAsEmpty(values))

class _MissingAsEmpty(dict):
    def __missing__(self, key: str) -> str:
        return ""

def render_optional_blocks(
    record: Optional[Mapping[str, Any]],
    blocks: Sequence[ConditionalBlock],
    separator: str = "\n",
) -> str:
    """Render the blocks whose required fields are present in the record."""
    if not record:
        return ""
    rendered = [block.render(record) for block in blocks if block.applies_to(record)]
    return separator.join(text for text in rendered if text.strip())
