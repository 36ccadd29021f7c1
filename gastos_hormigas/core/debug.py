from typing import Any, Dict, List


class DebugRegistry:
    """Named handles to live services, for development builds only."""

    def __init__(self, enabled: bool):
        self.enabled = enabled
        self._entries: Dict[str, Any] = {}

    def register(self, name: str, obj: Any) -> None:
        if not self.enabled:
            raise RuntimeError("Debug registry is disabled in this environment")
        self._entries[name] = obj

    def get(self, name: str) -> Any:
        if not self.enabled:
            raise RuntimeError("Debug registry is disabled in this environment")
        return self._entries[name]

    def names(self) -> List[str]:
        return sorted(self._entries) if self.enabled else []
