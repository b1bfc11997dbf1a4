from typing import Iterable, List, Optional


class StreamGate:
    """
    Decides how much of a growing text buffer can be released to a listener.

    - Never releases a partially typed guarded tag start at the buffer tail
      (e.g. "<open_qu" while the model is still writing "<open_questions>")
    - Reports the earliest complete opening tag so callers can hold everything
      from that point until the block is resolved
    """

    def __init__(self, tags: Iterable[str], extra_prefixes: Iterable[str] = ()):
        self.tags: List[str] = [t for t in tags if t]
        self.openings: List[str] = [f"<{t}>" for t in self.tags]
        prefixes = [f"<{t}" for t in self.tags]
        for p in extra_prefixes:
            if p and p not in prefixes:
                prefixes.append(p)
        self.prefixes: List[str] = prefixes

    def safe_cut(self, text: str) -> int:
        safe_end = len(text)
        for tag_start in self.prefixes:
            # longest candidate first; one match per guarded string is enough
            for i in range(len(tag_start), 0, -1):
                if text.endswith(tag_start[:i]):
                    safe_end = min(safe_end, len(text) - i)
                    break
        return safe_end

    def find_tag_start(self, text: str) -> Optional[int]:
        earliest: Optional[int] = None
        for opening in self.openings:
            idx = text.find(opening)
            if idx != -1 and (earliest is None or idx < earliest):
                earliest = idx
        return earliest

    def flush_limit(self, text: str) -> int:
        cut = self.safe_cut(text)
        held = self.find_tag_start(text)
        if held is not None:
            cut = min(cut, held)
        return cut
