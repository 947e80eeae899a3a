"""Package keys and their on-disk names.

A package key is ``name`` or ``name@version`` where ``name`` may be scoped
(``@scope/name``). On disk every key is stored under a single path
component, so the scope separator must be encoded. Percent-encoding is used
(``@vue/core@3.4.0`` → ``@vue%2Fcore@3.4.0``) because it is lossless: a
literal ``%`` in a key is itself escaped, so decoding never misattributes a
directory to the wrong key.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

# Characters left readable in directory names. Everything else (notably "/",
# "\\" and "%") is percent-encoded.
_SAFE_CHARS = "@"


def parse_package_key(key: str) -> tuple[str, str | None]:
    """Split a key into ``(name, version)``.

    The version delimiter is the last ``@`` after the scope slash, so the
    leading ``@`` of a scoped name is never taken as a version marker:

      "vue@3.4.0"             → ("vue", "3.4.0")
      "@vue/test-utils@2.0.0" → ("@vue/test-utils", "2.0.0")
      "@vue/test-utils"       → ("@vue/test-utils", None)
    """
    search_from = 0
    if key.startswith("@"):
        slash = key.find("/")
        # A scope without a slash has no room for a version: "@scope" is a name.
        if slash == -1:
            return key, None
        search_from = slash + 1

    at = key.rfind("@", search_from)
    if at == -1:
        return key, None
    return key[:at], key[at + 1 :] or None


def build_package_key(name: str, version: str | None = None) -> str:
    return f"{name}@{version}" if version else name


def encode_key(key: str) -> str:
    """Return the filesystem-safe directory name for a package key.

    Keys made only of dots are fully escaped so they never name the parent
    or current directory. An empty key has no directory and is rejected.
    """
    if not key:
        raise ValueError("package key must not be empty")
    encoded = quote(key, safe=_SAFE_CHARS)
    if not encoded.strip("."):
        encoded = encoded.replace(".", "%2E")
    return encoded


def decode_key(dirname: str) -> str:
    """Invert :func:`encode_key`."""
    return unquote(dirname)
