from importlib import import_module
from typing import Any, Dict, Optional, cast
import inspect

from ideate_agent.core.config import load_settings
from ideate_agent.core.interfaces import ConversationLog, GenerationProvider, ResourceNotifier, Tool
from ideate_agent.protocol.service.agent_service import AgentService


def load(dotted: str, **kwargs: Any) -> Any:
    """Import a dotted path and instantiate the class if callable.
    Filters kwargs to match the constructor signature (unless **kwargs is accepted)."""
    if not dotted or "." not in dotted:
        raise ValueError(f"Not a dotted import path: {dotted!r}")
    module, cls = dotted.rsplit(".", 1)
    mod = import_module(module)
    obj = getattr(mod, cls)

    if isinstance(obj, type):
        # class: inspect __init__ signature
        sig = inspect.signature(obj.__init__)
        params = list(sig.parameters.values())
        accepts_kwargs = any(p.kind == p.VAR_KEYWORD for p in params)
        if accepts_kwargs:
            return obj(**kwargs)
        # Filter only accepted params (skip 'self')
        allowed = {p.name for p in params if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY) and p.name != "self"}
        filtered = {k: v for k, v in kwargs.items() if k in allowed}
        return obj(**filtered)

    # callable or object (rare)
    return obj


class ServiceFactory:
    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = load_settings() if config is None else config
        self._provider: GenerationProvider | None = None
        self._log: ConversationLog | None = None
        self._notifier: ResourceNotifier | None = None
        self._tools: Dict[str, Tool] | None = None

    def _load_provider_slot(self, slot: str) -> Any:
        slot_cfg = self.config.get("providers", {}).get(slot, {}) or {}
        impl = slot_cfg.get("impl", "")
        args = slot_cfg.get("args", {}) or {}
        return load(impl, **args)

    def get_provider(self) -> GenerationProvider:
        if not self._provider:
            self._provider = cast(GenerationProvider, self._load_provider_slot("generation"))
        return self._provider

    def get_log(self) -> ConversationLog:
        if not self._log:
            self._log = cast(ConversationLog, self._load_provider_slot("conversation_log"))
        return self._log

    def get_notifier(self) -> Optional[ResourceNotifier]:
        notifier_cfg = self.config.get("providers", {}).get("notifier") or {}
        if not self._notifier and notifier_cfg.get("impl"):
            self._notifier = cast(ResourceNotifier, self._load_provider_slot("notifier"))
        return self._notifier

    def get_tools(self) -> Dict[str, Tool]:
        if self._tools is None:
            from ideate_agent.core.tool_registry import ToolRegistry

            tools_cfg = self.config.get("tools", {}) or {}
            registry_cfg = tools_cfg.get("registry", []) or []
            enabled = tools_cfg.get("enabled", []) or []
            self._tools = ToolRegistry(registry_cfg, enabled, notifier=self.get_notifier()).all()
        return self._tools

    def get_agent_service(self) -> AgentService:
        limits = self.config.get("limits", {}) or {}
        generation = self.config.get("generation", {}) or {}
        system = self.config.get("system", {}) or {}

        return AgentService(
            provider=self.get_provider(),
            conversation_log=self.get_log(),
            tools=self.get_tools(),
            system_prompt=system.get("prompt", "") or "",
            acting_identity=system.get("acting_identity", "local-user"),
            model=generation.get("model", "default"),
            turn_limit=int(generation.get("turn_limit", 1)),
            max_tool_iterations=int(limits.get("max_tool_iterations", 5)),
            history_limit=int(limits.get("history_limit", 20)),
            tool_timeout=limits.get("tool_timeout_sec"),
            block_tags=(self.config.get("blocks", {}) or {}).get("enabled"),
            guarded_prefixes=(self.config.get("stream", {}) or {}).get("guarded_prefixes") or (),
        )
