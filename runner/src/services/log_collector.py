"""
Collect output from stage processes.
"""

from typing import Optional, Union

def decode_output(raw: Optional[Union[bytes, str]]) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw

def collect_output(raw: Optional[Union[bytes, str]], tail_lines: int = 1000) -> str:
    """Keep the last tail_lines lines of a stage's combined output."""
    lines = decode_output(raw).splitlines()
    if tail_lines > 0 and len(lines) > tail_lines:
        lines = lines[-tail_lines:]
    return "\n".join(lines)
