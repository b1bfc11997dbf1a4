from typing import Any, Dict, List, Optional

from ideate_agent.core.interfaces import ResourceNotifier, Tool
from ideate_agent.core.logging import logger


class ToolRegistry:
    """Loads and provides available tools based on config.

    A registry entry points either at a single Tool class or at a toolset
    exposing tools(); toolsets are constructed once so their tools share state.
    """

    def __init__(
        self,
        registry_cfg: List[Dict[str, Any]],
        enabled: List[str],
        notifier: Optional[ResourceNotifier] = None,
    ):
        from ideate_agent.core.factory import load

        self.tools: Dict[str, Tool] = {}
        for tcfg in registry_cfg:
            name = tcfg.get("name")
            impl = tcfg.get("impl", "")
            args = dict(tcfg.get("args", {}) or {})
            args.setdefault("notifier", notifier)
            try:
                obj = load(impl, **args)
            except (ImportError, AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid tool registry entry {name!r}: {e}")
                continue

            candidates = obj.tools() if hasattr(obj, "tools") else [obj]
            for tool in candidates:
                if tool.name in enabled or name in enabled:
                    self.tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self.tools.get(name)

    def all(self) -> Dict[str, Tool]:
        return self.tools
