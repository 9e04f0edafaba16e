import hashlib
from pathlib import Path
from typing import Any


class JCS:
    """
    JSON Canonicalization Scheme (RFC 8785), restricted to the values a forest
    export contains: null, booleans, integers, strings, lists and string-keyed
    objects.
    """

    @staticmethod
    def canonicalize(obj: Any) -> str:
        """Convert Python object to JCS-canonical JSON string."""
        if obj is None:
            return 'null'
        elif isinstance(obj, bool):
            return 'true' if obj else 'false'
        elif isinstance(obj, int):
            return str(obj)
        elif isinstance(obj, str):
            return JCS._escape_string(obj)
        elif isinstance(obj, (list, tuple)):
            return '[' + ','.join(JCS.canonicalize(item) for item in obj) + ']'
        elif isinstance(obj, dict):
            for key in obj:
                if not isinstance(key, str):
                    raise TypeError(f"JCS object keys must be strings, got {type(key)}")
            items = sorted(obj.items(), key=lambda kv: kv[0].encode('utf-16-be'))
            return '{' + ','.join(f'{JCS._escape_string(k)}:{JCS.canonicalize(v)}' for k, v in items) + '}'
        else:
            raise TypeError(f"Cannot serialize {type(obj)} to JCS")

    @staticmethod
    def _escape_string(s: str) -> str:
        """Escape a string for JSON according to RFC 8785."""
        result = ['"']
        for char in s:
            code = ord(char)
            if char == '"':
                result.append('\\"')
            elif char == '\\':
                result.append('\\\\')
            elif char == '\b':
                result.append('\\b')
            elif char == '\f':
                result.append('\\f')
            elif char == '\n':
                result.append('\\n')
            elif char == '\r':
                result.append('\\r')
            elif char == '\t':
                result.append('\\t')
            elif code < 0x20:
                result.append(f'\\u{code:04x}')
            else:
                result.append(char)
        result.append('"')
        return ''.join(result)


class HashUtils:
    """SHA-256 hashing utilities for snapshot and export fingerprints."""

    @staticmethod
    def sha256_hex(data: bytes) -> str:
        """Compute SHA-256 hash, return lowercase hex string."""
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def sha256_file(path: Path) -> str:
        """Compute SHA-256 of entire file contents."""
        hasher = hashlib.sha256()
        with open(path, 'rb') as f:
            while chunk := f.read(8192):
                hasher.update(chunk)
        return hasher.hexdigest()

    @staticmethod
    def sha256_jcs(obj: Any) -> str:
        """Compute SHA-256 of the JCS-canonical representation."""
        return HashUtils.sha256_hex(JCS.canonicalize(obj).encode('utf-8'))
