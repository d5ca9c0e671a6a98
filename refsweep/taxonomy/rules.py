"""Ordered rule table for classifying git deletion failures.

Rules are checked top to bottom and the first matching category wins, so more
specific causes must come before generic ones.
"""

PROTECTED_REF = "protected-ref-web-ui-required"
HOOK_REJECTED = "hook-rejected"
NETWORK_FAILURE = "network-failure"
PERMISSION_DENIED = "permission-denied"
REF_NOT_FOUND = "ref-not-found"
UNKNOWN_ERROR = "unknown-error"

# (category, regex patterns matched case-insensitively against the error detail)
ERROR_RULES: list[tuple[str, list[str]]] = [
    (
        PROTECTED_REF,
        [
            r"can only delete protected",
            r"cannot delete (a )?protected",
            r"protected branch",
            r"protected tag",
            r"GH006",
            r"deletion of protected",
        ],
    ),
    (
        HOOK_REJECTED,
        [
            r"pre-receive hook declined",
            r"hook declined",
            r"\(hook rejected\)",
            r"rejected by .*hook",
        ],
    ),
    (
        NETWORK_FAILURE,
        [
            r"could not resolve host",
            r"connection (timed out|refused|reset)",
            r"timed out",
            r"network is unreachable",
            r"the remote end hung up",
            r"early eof",
            r"failed to connect",
            r"ssl certificate problem",
            r"gnutls_handshake",
        ],
    ),
    (
        PERMISSION_DENIED,
        [
            r"permission denied",
            r"permission to .* denied",
            r"access denied",
            r"authentication failed",
            r"returned error: 403",
            r"repository( '[^']*')? not found",
            r"not allowed to",
            r"insufficient permission",
        ],
    ),
    (
        REF_NOT_FOUND,
        [
            r"remote ref does not exist",
            r"(branch|tag|ref) '[^']*' not found",
            r"unable to resolve reference",
        ],
    ),
]

# Wrapper emitted by the git executor on the first line of every failure.
COMMAND_FAILED_PREFIX = "Command failed"

DEFAULT_KEY_LENGTH = 100

ERROR_HINTS: dict[str, str] = {
    PROTECTED_REF: "Protected refs must be deleted through the hosting web interface.",
    HOOK_REJECTED: "A server-side hook rejected the push; check the hosting rules for this ref.",
    NETWORK_FAILURE: "Check connectivity to the remote and retry; consider a lower concurrency.",
    PERMISSION_DENIED: "Confirm you have delete rights on the remote repository.",
    REF_NOT_FOUND: "The ref is already gone; run 'git fetch --prune' to refresh.",
}

GENERAL_HINTS = [
    "Check whether the failed refs are still in use",
    "Confirm you have permission to delete them",
    "Protected branches and tags must be deleted through the web interface",
]
