import json

import pytest

from api_chain.config import RuleSpec, load_chain_config, parse_chain_config
from api_chain.errors import ChainError


def test_invalid_json_raises_chain_error():
    with pytest.raises(ChainError, match="Error while parsing chain config: Expecting value"):
        parse_chain_config("invalid json")


def test_non_list_config_raises():
    with pytest.raises(ChainError, match="expected a list of rules"):
        parse_chain_config('{"doOn": "always"}')


def test_non_object_rule_raises():
    with pytest.raises(ChainError, match="rule 1 is not an object"):
        parse_chain_config([{}, "always"])


def test_wrong_field_type_raises():
    with pytest.raises(ChainError):
        parse_chain_config([{"data": "not a map"}])


def test_defaults_for_empty_rule():
    (rule,) = parse_chain_config("[[]]")
    assert rule == RuleSpec(condition="never", target="/", method="get", payload={}, propagate=True)


def test_short_keys_and_empty_array_payload():
    (rule,) = parse_chain_config(json.dumps([
        {"doOn": "always", "href": "/x", "method": "post", "data": [], "return": False, "globals": {"k": "v"}},
    ]))
    assert rule.condition == "always"
    assert rule.target == "/x"
    assert rule.method == "post"
    assert rule.payload == {}
    assert rule.propagate is False


def test_rules_are_immutable():
    (rule,) = parse_chain_config([{"condition": "always"}])
    with pytest.raises(Exception):
        rule.target = "/other"


def test_load_from_file(tmp_path):
    p = tmp_path / "chain.json"
    p.write_text(json.dumps([{"doOn": "always"}, {}]), encoding="utf-8")
    rules = load_chain_config(p)
    assert [r.condition for r in rules] == ["always", "never"]


def test_bytes_config():
    rules = parse_chain_config(json.dumps([{"doOn": "always"}]).encode("utf-8"))
    assert rules[0].condition == "always"


def test_undecodable_bytes_raise_chain_error():
    with pytest.raises(ChainError, match="Error while parsing chain config"):
        parse_chain_config(b"[\xff\xfe\xfa]")


def test_undecodable_file_raises_chain_error(tmp_path):
    p = tmp_path / "chain.json"
    p.write_bytes(b"[\xff\xfe\xfa]")
    with pytest.raises(ChainError, match="Error while parsing chain config"):
        load_chain_config(p)


def test_deeply_nested_json_raises_chain_error():
    with pytest.raises(ChainError):
        parse_chain_config("[" * 100000 + "]" * 100000)
