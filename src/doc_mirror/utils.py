import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Optional, Union

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def normalize(text: Optional[str]) -> str:
    """
    Turn arbitrary text into a slug: lowercase letters, digits and single hyphens.

    Accented letters are folded to their base letter, every other run of
    unsupported characters becomes one hyphen. Never raises.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text))
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_SLUG_CHARS.sub("-", ascii_text.lower()).strip("-")


def derive_document_id(node: Any) -> str:
    """Destination document id for a node: '<id>-<slug of title>'."""
    return f"{node.id}-{normalize(node.title)}"


def parse_epoch_ms(value: Union[str, int, float, None]) -> int:
    """
    Coerce a timestamp from the API into epoch milliseconds.

    Heuristic: values below 1e10 are taken as seconds.
    """
    if value is None or value == "":
        return 0
    ts = int(float(value))
    if ts < 10000000000:
        return ts * 1000
    return ts


def ms_to_iso(ms: int) -> str:
    """Epoch milliseconds -> ISO-8601 UTC with millisecond precision ('...Z').

    The value is taken as milliseconds as-is, use parse_epoch_ms for raw API input.
    """
    ms = int(ms or 0)
    dt = datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms % 1000:03d}Z"


def chunked(items: list, size: int) -> list:
    """Split a list into consecutive chunks of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    return [items[i:i + size] for i in range(0, len(items), size)]
