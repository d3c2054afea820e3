"""
Variable substitution for element content.

Replaces ``{{name}}`` tokens (and ``${name}`` tokens when system templates are
enabled) in a single pass. Tokens with no value are left as they are.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from pagestamp.core.config import TemplateConfig

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{\s*([\w.\-]+)\s*\}\}")
SYSTEM_TOKEN_PATTERN = re.compile(r"\$\{\s*([\w.\-]+)\s*\}")

GENERIC_USER_LABELS = frozenset(["User", "user", "anonymous"])

_MISSING = object()


def default_variables(config: Optional[TemplateConfig] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Built-in variables every template can use."""
    config = config or TemplateConfig()
    now = now or datetime.now()
    return {
        "date": now.strftime(config.date_format),
        "time": now.strftime(config.time_format),
        "year": str(now.year),
        "page": "1",
        "pageNumber": "1",
        "totalPages": "1",
        "FRONTEND_URL": config.frontend_url,
    }


def resolve_user(variables: Mapping[str, Any], anonymous_label: str) -> Tuple[str, str]:
    """
    Work out (email, name) for the ``user.*`` tokens.

    ``userObj`` wins over ``user``. A string ``user`` containing ``@`` is an
    e-mail; any other string is a name unless it is a generic label.
    """
    email = ""
    name = ""
    user_obj = variables.get("userObj")
    user = variables.get("user")

    if isinstance(user_obj, Mapping):
        email = user_obj.get("email") or user_obj.get("name") or ""
        name = user_obj.get("name") or user_obj.get("email") or ""
    elif isinstance(user, str) and user:
        if "@" in user and len(user) > 3:
            email = user
            name = user.split("@")[0]
        elif user not in GENERIC_USER_LABELS:
            email = name = user
    elif isinstance(user, Mapping):
        email = user.get("email") or user.get("name") or ""
        name = user.get("name") or user.get("email") or ""

    return str(email or anonymous_label), str(name or anonymous_label)


def _lookup(variables: Mapping[str, Any], name: str) -> Any:
    if name in variables:
        return variables[name]
    if "." not in name:
        return _MISSING
    current: Any = variables
    for part in name.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def substitute_variables(
    text: Optional[str],
    variables: Optional[Mapping[str, Any]] = None,
    support_system_templates: bool = False,
    enable_logging: bool = False,
    config: Optional[TemplateConfig] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Substitute variables in ``text``.

    Caller values override the built-in defaults (date, time, year, page,
    pageNumber, totalPages, FRONTEND_URL). Dotted names look through nested
    mappings. ``user.email`` and ``user.name`` always resolve, falling back
    to the anonymous label.

    Args:
        text: Content with placeholders
        variables: Values for substitution
        support_system_templates: Also replace ``${name}`` tokens
        enable_logging: Emit debug records; output is unaffected
        config: Source of default formats, URL and labels
        now: Clock override for the date/time defaults

    Returns:
        Text with every resolvable token replaced
    """
    if not text:
        return ""

    config = config or TemplateConfig()
    merged: Dict[str, Any] = default_variables(config, now)
    merged.update(variables or {})
    email, name = resolve_user(merged, config.anonymous_user_label)

    def replace(match: "re.Match") -> str:
        key = match.group(1)
        if key == "user.email":
            value: Any = email
        elif key == "user.name":
            value = name
        else:
            value = _lookup(merged, key)
        if value is _MISSING or isinstance(value, Mapping):
            if enable_logging:
                logger.debug(f"No value for '{key}', leaving token in place")
            return match.group(0)
        if enable_logging:
            logger.debug(f"Substituted '{key}'")
        return "" if value is None else str(value)

    result = TOKEN_PATTERN.sub(replace, text)
    if support_system_templates:
        result = SYSTEM_TOKEN_PATTERN.sub(replace, result)
    return result
