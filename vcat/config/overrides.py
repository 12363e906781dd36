from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from vcat.config.models import AppConfig


@dataclass(frozen=True)
class CliConfigOverrides:
    threads: Optional[int] = None
    web_root: Optional[str] = None
    codec: Optional[str] = None
    log_path: Optional[str] = None
    debug: bool = False

    @property
    def has_overrides(self) -> bool:
        return any(
            value is not None
            for value in (self.threads, self.web_root, self.codec, self.log_path)
        ) or self.debug

    def as_dict(self) -> Dict[str, Any]:
        general: Dict[str, Any] = {}
        renditions: Dict[str, Any] = {}
        if self.threads is not None:
            general["threads"] = self.threads
        if self.web_root is not None:
            general["web_root"] = self.web_root
        if self.log_path is not None:
            general["log_path"] = str(self.log_path)
        if self.debug:
            general["debug"] = True
        if self.codec is not None:
            renditions["codec"] = self.codec
        data: Dict[str, Any] = {}
        if general:
            data["general"] = general
        if renditions:
            data["renditions"] = renditions
        return data

    def apply(self, config: AppConfig) -> AppConfig:
        """Returns a re-validated copy of config with the CLI values merged in.

        Raises pydantic.ValidationError for invalid values (e.g. unknown codec).
        """
        if not self.has_overrides:
            return config
        merged = _deep_merge_dicts(config.model_dump(), self.as_dict())
        return AppConfig(**merged)


def resolve_roles(config: AppConfig, roles: Optional[Sequence[str]], private: bool) -> List[str]:
    """Explicit --role values win; otherwise private or default roles from config."""
    if roles:
        return list(dict.fromkeys(roles))
    if private:
        return list(config.general.private_roles)
    return list(config.general.default_roles)


def _deep_merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
