"""Unit tests for variable substitution."""

from datetime import datetime

from pagestamp.core.config import ANONYMOUS_USER_LABEL, TemplateConfig
from pagestamp.layout.substitution import default_variables, resolve_user, substitute_variables

NOW = datetime(2024, 3, 5, 14, 7, 9)


def test_simple_replacement():
    """Known tokens are replaced."""
    assert substitute_variables("Hello {{name}}!", {"name": "Dana"}) == "Hello Dana!"


def test_whitespace_inside_braces():
    assert substitute_variables("{{ name }}", {"name": "Dana"}) == "Dana"


def test_unresolved_token_left_verbatim():
    """Tokens with no value stay as written."""
    assert substitute_variables("Hi {{missing}}", {}) == "Hi {{missing}}"


def test_empty_text():
    assert substitute_variables("", {"a": 1}) == ""
    assert substitute_variables(None) == ""


def test_text_without_tokens_unchanged():
    assert substitute_variables("plain text", {"a": 1}) == "plain text"


def test_defaults():
    """Built-in variables are always present."""
    text = substitute_variables("{{date}} {{time}} {{year}} {{page}}/{{totalPages}}", now=NOW)
    assert text == "05/03/2024 14:07:09 2024 1/1"


def test_frontend_url_from_config():
    config = TemplateConfig(frontend_url="https://example.org")
    assert substitute_variables("{{FRONTEND_URL}}", config=config) == "https://example.org"


def test_caller_values_override_defaults():
    assert substitute_variables("{{page}} of {{totalPages}}", {"page": 5, "totalPages": 9}) == "5 of 9"


def test_none_value_becomes_empty():
    assert substitute_variables("[{{x}}]", {"x": None}) == "[]"


def test_nested_lookup():
    """Dotted names walk nested mappings."""
    variables = {"school": {"name": "Alon", "city": {"name": "Haifa"}}}
    assert substitute_variables("{{school.name}} / {{school.city.name}}", variables) == "Alon / Haifa"


def test_mapping_value_left_verbatim():
    """A token that resolves to a mapping is not stringified."""
    assert substitute_variables("{{school}}", {"school": {"name": "Alon"}}) == "{{school}}"


def test_single_pass():
    """Substituted values are not scanned again."""
    assert substitute_variables("{{a}}", {"a": "{{b}}", "b": "deep"}) == "{{b}}"


def test_user_from_email_string():
    variables = {"user": "dana@example.com"}
    assert substitute_variables("{{user.email}} {{user.name}}", variables) == "dana@example.com dana"


def test_user_from_plain_name():
    assert substitute_variables("{{user.name}}", {"user": "Dana"}) == "Dana"


def test_generic_user_label_is_anonymous():
    """Generic labels are not treated as real names."""
    assert substitute_variables("{{user.name}}", {"user": "User"}) == ANONYMOUS_USER_LABEL


def test_missing_user_is_anonymous():
    assert substitute_variables("{{user.email}}", {}) == ANONYMOUS_USER_LABEL


def test_user_object_wins():
    """userObj has priority over user."""
    variables = {"user": "other@example.com", "userObj": {"email": "dana@example.com", "name": "Dana"}}
    assert substitute_variables("{{user.email}} {{user.name}}", variables) == "dana@example.com Dana"


def test_resolve_user_partial_object():
    """Missing name falls back to the e-mail."""
    assert resolve_user({"userObj": {"email": "a@b.co"}}, "anon") == ("a@b.co", "a@b.co")


def test_system_templates():
    """${name} tokens are only replaced when enabled."""
    variables = {"filename": "lesson.pdf"}
    assert substitute_variables("${filename}", variables) == "${filename}"
    assert substitute_variables("${filename}", variables, support_system_templates=True) == "lesson.pdf"


def test_logging_does_not_change_output():
    text = "{{name}} {{missing}}"
    assert substitute_variables(text, {"name": "x"}, enable_logging=True) == \
        substitute_variables(text, {"name": "x"})


def test_input_mapping_not_mutated():
    variables = {"name": "Dana"}
    substitute_variables("{{name}} {{date}}", variables)
    assert variables == {"name": "Dana"}


def test_default_variables_keys():
    defaults = default_variables(now=NOW)
    assert set(defaults) == {"date", "time", "year", "page", "pageNumber", "totalPages", "FRONTEND_URL"}
