import re
from typing import Optional


# tqdm bars look like " 42%|████▏     | 12.3/29.25 [00:10<00:14,  1.20seconds/s]"
_PERCENT_RE = re.compile(r"(?<![\d.])(\d{1,3})%")


def parse_progress(text: str) -> Optional[int]:
    """Extract a completion percentage from a chunk of tool output.

    Only the first `<int>%` in the chunk counts. Chunks without one, or whose
    first match is above 100, carry no progress signal and yield None.
    """
    if not isinstance(text, str) or not text:
        return None
    match = _PERCENT_RE.search(text)
    if not match:
        return None
    percent = int(match.group(1))
    if percent > 100:
        return None
    return percent
