import struct

import pytest

from softap_configd import codec
from softap_configd.ap_config import AP_BAND_5GHZ, AccessPointConfig, KeyMgmt, SecurityType
from softap_configd.errors import DecodeError, DecodeErrorKind, EncodeError


def _utf(text: str) -> bytes:
    raw = text.encode("utf-8")
    return struct.pack(">H", len(raw)) + raw


def _v1_blob(ssid: str, auth: int, psk: str = None) -> bytes:
    blob = struct.pack(">i", 1) + _utf(ssid) + struct.pack(">i", auth)
    if psk is not None:
        blob += _utf(psk)
    return blob


def test_roundtrip_wpa2():
    cfg = AccessPointConfig.create(
        "Guest123", SecurityType.WPA2_PSK, "abcdefgh", ap_band=AP_BAND_5GHZ, ap_channel=36
    )
    assert codec.decode(codec.encode(cfg)) == cfg


def test_roundtrip_open_has_no_psk():
    cfg = AccessPointConfig.create("Home_WiFi", SecurityType.OPEN)
    out = codec.decode(codec.encode(cfg))
    assert out == cfg
    assert out.pre_shared_key is None
    assert out.security_type == SecurityType.OPEN


def test_encode_layout_is_byte_exact():
    cfg = AccessPointConfig.create("ab", SecurityType.WPA2_PSK, "12345678", ap_band=1, ap_channel=6)
    expected = (
        struct.pack(">i", 2)
        + b"\x00\x02ab"
        + struct.pack(">i", 1)
        + struct.pack(">i", 6)
        + struct.pack(">i", 4)
        + b"\x00\x0812345678"
    )
    assert codec.encode(cfg) == expected


def test_open_network_writes_no_psk_field_even_if_set():
    cfg = AccessPointConfig.create("ab", SecurityType.OPEN, pre_shared_key="ignored!")
    blob = codec.encode(cfg)
    assert blob.endswith(struct.pack(">i", 0))


def test_v1_blob_decodes_with_default_band_and_channel():
    cfg = codec.decode(_v1_blob("OldAP", int(KeyMgmt.WPA2_PSK), "oldpassword"))
    assert cfg.ssid == "OldAP"
    assert cfg.ap_band == 0
    assert cfg.ap_channel == 0
    assert cfg.pre_shared_key == "oldpassword"
    assert cfg.security_type == SecurityType.WPA2_PSK


def test_reencode_of_v1_upgrades_to_v2():
    cfg = codec.decode(_v1_blob("OldAP", int(KeyMgmt.NONE)))
    blob = codec.encode(cfg)
    assert struct.unpack(">i", blob[:4])[0] == codec.AP_CONFIG_FILE_VERSION == 2
    assert codec.decode(blob) == cfg


@pytest.mark.parametrize("version", [0, 3, -1, 0x7FFFFFFF])
def test_unknown_version_is_bad_version(version):
    blob = struct.pack(">i", version) + _utf("x") + struct.pack(">i", 0)
    with pytest.raises(DecodeError) as exc:
        codec.decode(blob)
    assert exc.value.kind == DecodeErrorKind.BAD_VERSION


def test_truncated_header_is_bad_version():
    with pytest.raises(DecodeError) as exc:
        codec.decode(b"\x00\x00")
    assert exc.value.kind == DecodeErrorKind.BAD_VERSION

    with pytest.raises(DecodeError) as exc:
        codec.decode(b"")
    assert exc.value.kind == DecodeErrorKind.BAD_VERSION


def test_truncated_body_is_io_failure_at_every_cut():
    blob = codec.encode(AccessPointConfig.create("Guest123", SecurityType.WPA2_PSK, "abcdefgh"))
    for cut in range(4, len(blob)):
        with pytest.raises(DecodeError) as exc:
            codec.decode(blob[:cut])
        assert exc.value.kind == DecodeErrorKind.IO_FAILURE, cut


def test_unknown_auth_code_is_io_failure():
    blob = struct.pack(">i", 2) + _utf("x") + struct.pack(">ii", 0, 0) + struct.pack(">i", 99)
    with pytest.raises(DecodeError) as exc:
        codec.decode(blob)
    assert exc.value.kind == DecodeErrorKind.IO_FAILURE
    assert exc.value.__suppress_context__ is True


def test_undecodable_string_is_io_failure():
    blob = struct.pack(">i", 2) + b"\x00\x02\xff\xfe" + struct.pack(">iii", 0, 0, 0)
    with pytest.raises(DecodeError) as exc:
        codec.decode(blob)
    assert exc.value.kind == DecodeErrorKind.IO_FAILURE


def test_trailing_bytes_are_ignored():
    cfg = AccessPointConfig.create("Home_WiFi", SecurityType.OPEN)
    assert codec.decode(codec.encode(cfg) + b"junk") == cfg


def test_nul_uses_modified_utf8():
    cfg = AccessPointConfig.create("a\x00b", SecurityType.OPEN)
    blob = codec.encode(cfg)
    assert blob[4:10] == b"\x00\x04a\xc0\x80b"
    assert codec.decode(blob).ssid == "a\x00b"


def test_supplementary_char_written_as_surrogate_pair():
    cfg = AccessPointConfig.create("\U0001F600", SecurityType.OPEN)
    blob = codec.encode(cfg)
    assert blob[4:12] == b"\x00\x06\xed\xa0\xbd\xed\xb8\x80"
    assert codec.decode(blob).ssid == "\U0001F600"


def test_decoder_accepts_standard_four_byte_utf8():
    blob = struct.pack(">i", 2) + _utf("\U0001F600") + struct.pack(">iii", 0, 0, 0)
    assert codec.decode(blob).ssid == "\U0001F600"


def test_encode_rejects_ambiguous_auth():
    cfg = AccessPointConfig(
        ssid="x",
        allowed_key_management=frozenset({KeyMgmt.NONE, KeyMgmt.WPA2_PSK}),
    )
    with pytest.raises(EncodeError):
        codec.encode(cfg)


@pytest.mark.parametrize("band,channel", [(0, 2 ** 31), (0, -(2 ** 31) - 1), (2 ** 40, 6)])
def test_encode_rejects_ints_outside_int32(band, channel):
    cfg = AccessPointConfig.create("Guest123", SecurityType.OPEN, ap_band=band, ap_channel=channel)
    with pytest.raises(EncodeError):
        codec.encode(cfg)


def test_encode_accepts_int32_extremes():
    cfg = AccessPointConfig.create("Guest123", SecurityType.OPEN, ap_band=-(2 ** 31), ap_channel=2 ** 31 - 1)
    decoded = codec.decode(codec.encode(cfg))
    assert (decoded.ap_band, decoded.ap_channel) == (-(2 ** 31), 2 ** 31 - 1)


def test_read_missing_file_is_io_failure(tmp_path):
    with pytest.raises(DecodeError) as exc:
        codec.read_config_file(tmp_path / "nope.conf")
    assert exc.value.kind == DecodeErrorKind.IO_FAILURE


def test_write_then_read(tmp_path):
    path = tmp_path / "wifi" / "softap.conf"
    cfg = AccessPointConfig.create("Guest123", SecurityType.WPA2_PSK, "abcdefgh")
    codec.write_config_file(path, cfg)
    assert codec.read_config_file(path) == cfg
    assert (path.stat().st_mode & 0o777) == 0o600
    assert not (tmp_path / "wifi" / "softap.conf.tmp").exists()


def test_failed_replace_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "softap.conf"
    old = AccessPointConfig.create("OldAP", SecurityType.OPEN)
    codec.write_config_file(path, old)
    before = path.read_bytes()

    def boom(_src, _dst):
        raise OSError("disk full")

    monkeypatch.setattr(codec.os, "replace", boom)
    with pytest.raises(OSError):
        codec.write_config_file(path, AccessPointConfig.create("NewAP", SecurityType.OPEN))

    assert path.read_bytes() == before
    assert not (tmp_path / "softap.conf.tmp").exists()
