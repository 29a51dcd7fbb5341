from openfhe import *
import base64
import contextlib
import os
import tempfile

# ============================================================================
# Ciphertext <-> base64 (OpenFHE only serializes through files)
# ============================================================================

@contextlib.contextmanager
def _scratch_file(data: bytes = b""):
    """Yield the path of a temp file holding `data`; removed afterwards."""
    fd, path = tempfile.mkstemp(suffix='.bin')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)


def serialize_ciphertext(ciphertext) -> str:
    """
    Encode an encrypted move as the base64 `data` field of the ledger payload.
    """
    with _scratch_file() as path:
        if not SerializeToFile(path, ciphertext, BINARY):
            raise RuntimeError("Ciphertext serialization failed")
        with open(path, 'rb') as f:
            return base64.b64encode(f.read()).decode('utf-8')


def deserialize_ciphertext(ct_b64: str):
    with _scratch_file(base64.b64decode(ct_b64)) as path:
        ciphertext, ok = DeserializeCiphertext(path, BINARY)
        if not ok:
            raise RuntimeError("Ciphertext deserialization failed")
        return ciphertext
