"""
Binary codec for the persisted softAP configuration (softap.conf).

Layout, all integers big-endian:

    int32   version          1 or 2 on read, always 2 on write
    u16+b   ssid             length-prefixed modified UTF-8
    int32   band             version >= 2 only
    int32   channel          version >= 2 only
    int32   auth type        KeyMgmt code
    u16+b   pre-shared key   only when auth type != NONE

Strings use the DataOutputStream.writeUTF flavour of UTF-8 (NUL as C0 80,
supplementary characters as surrogate pairs) so files written by older
firmware read back byte-for-byte. For ordinary text this is plain UTF-8.
"""

import os
import struct
from pathlib import Path
from typing import Union

from softap_configd.ap_config import AP_BAND_2GHZ, AccessPointConfig, KeyMgmt
from softap_configd.errors import DecodeError, DecodeErrorKind, EncodeError

AP_CONFIG_FILE_VERSION = 2
SUPPORTED_VERSIONS = (1, 2)

_INT = struct.Struct(">i")
_LEN = struct.Struct(">H")
_MAX_UTF_LEN = 0xFFFF
_INT_MIN = -(2 ** 31)
_INT_MAX = 2 ** 31 - 1


def _encode_mutf8(text: str) -> bytes:
    out = bytearray()
    for ch in text:
        cp = ord(ch)
        if cp == 0:
            out += b"\xc0\x80"
        elif cp > 0xFFFF:
            cp -= 0x10000
            for unit in (0xD800 + (cp >> 10), 0xDC00 + (cp & 0x3FF)):
                out += chr(unit).encode("utf-8", "surrogatepass")
        else:
            out += ch.encode("utf-8", "surrogatepass")
    return bytes(out)


def _decode_mutf8(raw: bytes) -> str:
    # C0 80 never appears in standard UTF-8, so this can't clobber real data.
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    # Re-join surrogate pairs into supplementary characters.
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


class _Reader:
    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    def _take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise EOFError(f"need {n} bytes at offset {self._pos}, have {len(self._data) - self._pos}")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def read_int(self) -> int:
        return _INT.unpack(self._take(_INT.size))[0]

    def read_utf(self) -> str:
        (length,) = _LEN.unpack(self._take(_LEN.size))
        return _decode_mutf8(self._take(length))


def _write_int(out: bytearray, value: int, field: str) -> None:
    value = int(value)
    if not _INT_MIN <= value <= _INT_MAX:
        raise EncodeError(f"{field}_out_of_range_{value}")
    out += _INT.pack(value)


def _write_utf(out: bytearray, text: str, field: str) -> None:
    raw = _encode_mutf8(text)
    if len(raw) > _MAX_UTF_LEN:
        raise EncodeError(f"{field}_too_long_{len(raw)}")
    out += _LEN.pack(len(raw))
    out += raw


def decode(data: bytes) -> AccessPointConfig:
    """
    Parse a softap.conf blob.

    Raises DecodeError(BAD_VERSION) for an unreadable or unknown version
    header, DecodeError(IO_FAILURE) for anything wrong after it.
    """
    reader = _Reader(data)
    try:
        version = reader.read_int()
    except EOFError as e:
        raise DecodeError(DecodeErrorKind.BAD_VERSION, str(e)) from e
    if version not in SUPPORTED_VERSIONS:
        raise DecodeError(DecodeErrorKind.BAD_VERSION, f"version={version}")

    try:
        ssid = reader.read_utf()
        band = AP_BAND_2GHZ
        channel = 0
        if version >= 2:
            band = reader.read_int()
            channel = reader.read_int()

        code = reader.read_int()
        try:
            auth = KeyMgmt(code)
        except ValueError:
            raise DecodeError(DecodeErrorKind.IO_FAILURE, f"unknown_auth_type={code}") from None

        psk = None
        if auth != KeyMgmt.NONE:
            psk = reader.read_utf()
    except (EOFError, UnicodeDecodeError) as e:
        raise DecodeError(DecodeErrorKind.IO_FAILURE, str(e)) from e

    return AccessPointConfig(
        ssid=ssid,
        ap_band=band,
        ap_channel=channel,
        allowed_key_management=frozenset({auth}),
        pre_shared_key=psk,
    )


def encode(config: AccessPointConfig) -> bytes:
    """
    Serialize at the current format version, whatever version was loaded.
    """
    auth = config.auth_type()
    if not isinstance(auth, KeyMgmt):
        raise EncodeError(f"auth_type_{auth.value}")

    out = bytearray()
    out += _INT.pack(AP_CONFIG_FILE_VERSION)
    _write_utf(out, config.ssid or "", "ssid")
    _write_int(out, config.ap_band, "ap_band")
    _write_int(out, config.ap_channel, "ap_channel")
    out += _INT.pack(int(auth))
    if auth != KeyMgmt.NONE:
        _write_utf(out, config.pre_shared_key or "", "pre_shared_key")
    return bytes(out)


def read_config_file(path: Union[str, Path]) -> AccessPointConfig:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeError(DecodeErrorKind.IO_FAILURE, f"{type(e).__name__}: {e}") from e
    return decode(data)


def write_config_file(path: Union[str, Path], config: AccessPointConfig) -> None:
    """
    Atomic replace: encode first, write a temp file, fsync, then rename.

    On any error the previous file is left as it was.
    """
    payload = encode(config)
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(tmp, "wb") as f:
            f.write(payload)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError:
                # Some filesystems refuse fsync; best-effort.
                pass
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except OSError:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise
