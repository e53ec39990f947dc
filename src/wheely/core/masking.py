"""
Log masking for sensitive values.

Runs as a structlog processor so secrets and emails are masked before any
renderer sees the event. Sensitive keys are matched case-insensitively and
by substring, so `new_password` is caught by `password`.
"""

from typing import Any, Iterable, MutableMapping

# Keys structlog itself adds; never masked
_RESERVED_KEYS = frozenset({"event", "level", "logger", "timestamp", "exc_info", "stack_info"})


class MaskingProcessor:
    """
    Masks sensitive values in structlog event dicts.

    Features:
    - Full masking for credential-like keys
    - Partial masking for email keys (j*****e@example.com)
    - Deep traversal of nested dicts and lists
    """

    def __init__(self, sensitive_keys: Iterable[str], email_keys: Iterable[str] = ("email",)) -> None:
        self.sensitive_keys = [key.lower() for key in sensitive_keys]
        self.email_keys = [key.lower() for key in email_keys]

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in list(event_dict.keys()):
            if key in _RESERVED_KEYS:
                continue
            event_dict[key] = self._mask(key, event_dict[key])
        return event_dict

    def _mask(self, key: str, value: Any) -> Any:
        if self._is_sensitive_key(key):
            return self._apply_full_masking(value)

        if self._is_email_key(key) and isinstance(value, str):
            return mask_email(value)

        if isinstance(value, dict):
            return {k: self._mask(str(k), v) for k, v in value.items()}

        if isinstance(value, (list, tuple)):
            return [self._mask(key, item) for item in value]

        return value

    def _is_sensitive_key(self, key: str) -> bool:
        key_lower = key.lower()
        return any(sensitive in key_lower for sensitive in self.sensitive_keys)

    def _is_email_key(self, key: str) -> bool:
        key_lower = key.lower()
        return any(email_key in key_lower for email_key in self.email_keys)

    @staticmethod
    def _apply_full_masking(value: Any) -> str:
        str_value = str(value) if value is not None else ""

        # Long values keep a length hint
        if len(str_value) > 16:
            return f"****[{len(str_value)} chars]"
        return "****"


def mask_email(email: str) -> str:
    """
    Mask email addresses in format: e*****e@email.com for example@email.com
    """
    if not email or "@" not in email:
        return "****"

    local_part, domain = email.split("@", 1)
    if not local_part or not domain:
        return "****"

    if len(local_part) <= 2:
        # Very short local part, mask completely
        masked_local = "****"
    else:
        middle_stars = "*" * min(5, len(local_part) - 2)
        masked_local = f"{local_part[0]}{middle_stars}{local_part[-1]}"

    return f"{masked_local}@{domain}"
