import dataclasses

import pytest

from joinguard.datatypes.reputation_datatypes import ReputationVerdict


def test_from_dict_defaults_missing_flags_to_false() -> None:
    verdict = ReputationVerdict.from_dict({"vpn": True, "tor": None})

    assert verdict.vpn is True
    assert verdict.tor is False
    assert verdict.proxy is False
    assert verdict.relay is False


def test_from_dict_only_accepts_real_booleans() -> None:
    verdict = ReputationVerdict.from_dict({"vpn": "false", "proxy": "true", "tor": 1, "relay": "yes"})

    assert verdict.is_flagged is False


def test_to_dict_includes_passthrough_fields() -> None:
    payload = {"vpn": False, "proxy": True, "tor": False, "relay": False, "threat": "low"}

    assert ReputationVerdict.from_dict(payload).to_dict() == payload


@pytest.mark.parametrize("flag", ["vpn", "proxy", "tor", "relay"])
def test_any_single_flag_marks_verdict_flagged(flag: str) -> None:
    assert ReputationVerdict(**{flag: True}).is_flagged is True


def test_clean_verdict_is_not_flagged() -> None:
    assert ReputationVerdict().is_flagged is False


def test_describe_uses_lowercase_booleans() -> None:
    assert ReputationVerdict(vpn=True).describe() == "VPN=true, Proxy=false, Tor=false, Relay=false"


def test_verdict_is_immutable() -> None:
    verdict = ReputationVerdict(extra={"score": 3})

    with pytest.raises(dataclasses.FrozenInstanceError):
        verdict.vpn = True  # type: ignore[misc]
    with pytest.raises(TypeError):
        verdict.extra["score"] = 9  # type: ignore[index]
