import pytest

from bridgewatch.bridge_lines import BridgeRecord, Category, classify, is_ipv6
from samples import FINGERPRINT, NOW, OBFS4_V4, OBFS4_V6, WEBTUNNEL_V4, WEBTUNNEL_V6


def test_obfs4_ipv4_fields():
    record = classify(OBFS4_V4, now=NOW)

    assert record is not None
    assert record.category is Category.OBFS4_IPV4
    assert record.raw == OBFS4_V4
    assert record.address == "1.2.3.4"
    assert record.port == 443
    assert record.fingerprint == FINGERPRINT
    assert record.cert == "XYZ"
    assert record.iat_mode == "0"
    assert record.added_at == NOW


def test_obfs4_ipv6_strips_brackets():
    record = classify(OBFS4_V6)

    assert record is not None
    assert record.category is Category.OBFS4_IPV6
    assert record.address == "2001:db8::1"
    assert record.port == 9001
    assert record.iat_mode == "2"


def test_webtunnel_categories():
    v4 = classify(WEBTUNNEL_V4)
    v6 = classify(WEBTUNNEL_V6)

    assert v4.category is Category.WEBTUNNEL_IPV4
    assert v4.url == "https://example.com/abc"
    assert v4.ver == "0.0.1"
    assert v6.category is Category.WEBTUNNEL_IPV6
    assert v6.address == "::1"


def test_line_is_trimmed_before_matching():
    record = classify(f"  {OBFS4_V4}\n")

    assert record is not None
    assert record.raw == OBFS4_V4


def test_added_at_defaults_to_current_time():
    record = classify(OBFS4_V4)

    assert record.added_at.endswith("+00:00")


@pytest.mark.parametrize(
    "line",
    [
        "",
        "garbage line",
        f"snowflake 1.2.3.4:443 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"obfs4x 1.2.3.4:443 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4:443 {'A' * 39} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4:443 {'G' * 40} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4:443 {FINGERPRINT} iat-mode=0 cert=XYZ",
        f"obfs4 1.2.3.4:443 {FINGERPRINT} cert=XYZ",
        f"obfs4 1.2.3.4:0 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4:70000 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"obfs4 1.2.3.4:443 {FINGERPRINT} cert=XYZ iat-mode=0 extra",
        f"obfs4 host.example:443 {FINGERPRINT} cert=XYZ iat-mode=0",
        f"webtunnel 10.0.0.1:443 {FINGERPRINT} ver=0.0.1 url=https://x",
        f"webtunnel 10.0.0.1:443 {FINGERPRINT} cert=XYZ iat-mode=0",
    ],
)
def test_rejects_lines_outside_grammar(line):
    assert classify(line) is None


def test_none_input_is_rejected():
    assert classify(None) is None


def test_is_ipv6_uses_colon_heuristic():
    assert is_ipv6("::1")
    assert is_ipv6("2001:db8::1")
    assert not is_ipv6("10.0.0.1")


def test_to_dict_matches_persisted_shape():
    obfs4 = classify(OBFS4_V4, now=NOW).to_dict()
    webtunnel = classify(WEBTUNNEL_V4, now=NOW).to_dict()

    assert obfs4 == {
        "bridge": OBFS4_V4,
        "ip": "1.2.3.4",
        "port": "443",
        "fingerprint": FINGERPRINT,
        "cert": "XYZ",
        "iat-mode": "0",
        "addedAt": NOW,
    }
    assert set(webtunnel) == {"bridge", "ip", "port", "fingerprint", "url", "ver", "addedAt"}


def test_category_parts():
    assert Category.from_parts("webtunnel", "ipv6") is Category.WEBTUNNEL_IPV6
    assert Category.OBFS4_IPV4.transport == "obfs4"
    assert Category.OBFS4_IPV4.family == "ipv4"
    assert Category.WEBTUNNEL_IPV6.label == "WEBTUNNEL IPV6"


def test_from_dict_reads_back_persisted_records():
    for line in (OBFS4_V4, OBFS4_V6, WEBTUNNEL_V4, WEBTUNNEL_V6):
        record = classify(line, now=NOW)

        assert BridgeRecord.from_dict(record.to_dict()) == record


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "obfs4 1.2.3.4:443",
        {"ip": "1.2.3.4", "port": "443"},
        {"bridge": "snowflake 1.2.3.4:443", "ip": "1.2.3.4", "port": "443"},
        {"bridge": OBFS4_V4, "ip": "1.2.3.4", "port": "https"},
        {"bridge": OBFS4_V4, "port": "443"},
    ],
)
def test_from_dict_rejects_unusable_entries(payload):
    assert BridgeRecord.from_dict(payload) is None
