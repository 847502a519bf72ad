"""Canonical rule ID registry.

Single source of truth for all rule IDs emitted by evidency-monitor.

PUBLIC_RULE_IDS lists every ID the shipped scanners can emit; it is
sorted, unique and well-formed, checked at import time.
"""

from __future__ import annotations

# ── Code execution (public) ─────────────────────────────────────────
SEC_EVAL_001 = "SEC_EVAL_001"
SEC_EXEC_001 = "SEC_EXEC_001"
SEC_SHELL_EXEC_001 = "SEC_SHELL_EXEC_001"
SEC_SYSTEM_001 = "SEC_SYSTEM_001"
SEC_PASSTHRU_001 = "SEC_PASSTHRU_001"
SEC_PROC_OPEN_001 = "SEC_PROC_OPEN_001"
SEC_BACKTICK_001 = "SEC_BACKTICK_001"

# ── SQL injection (public) ──────────────────────────────────────────
SEC_SQL_CONCAT_001 = "SEC_SQL_CONCAT_001"
SEC_MYSQL_QUERY_001 = "SEC_MYSQL_QUERY_001"
SEC_MYSQLI_CONCAT_001 = "SEC_MYSQLI_CONCAT_001"

# ── Reflected output / XSS (public) ─────────────────────────────────
SEC_XSS_ECHO_001 = "SEC_XSS_ECHO_001"
SEC_XSS_PRINT_001 = "SEC_XSS_PRINT_001"

# ── File inclusion, deserialization, upload (public) ────────────────
SEC_FILE_INCLUSION_001 = "SEC_FILE_INCLUSION_001"
SEC_UNSERIALIZE_001 = "SEC_UNSERIALIZE_001"
SEC_UPLOAD_DEST_001 = "SEC_UPLOAD_DEST_001"

# ── Hardcoded secrets (public) ──────────────────────────────────────
SEC_HARDCODED_PASSWORD_001 = "SEC_HARDCODED_PASSWORD_001"
SEC_HARDCODED_API_KEY_001 = "SEC_HARDCODED_API_KEY_001"

# ── Information disclosure (public) ─────────────────────────────────
SEC_PHPINFO_001 = "SEC_PHPINFO_001"
SEC_VAR_DUMP_001 = "SEC_VAR_DUMP_001"

# ── Weak hashing (public) ───────────────────────────────────────────
SEC_WEAK_HASH_MD5_001 = "SEC_WEAK_HASH_MD5_001"
SEC_WEAK_HASH_SHA1_001 = "SEC_WEAK_HASH_SHA1_001"

# ── SSRF (public) ───────────────────────────────────────────────────
SEC_SSRF_CURL_001 = "SEC_SSRF_CURL_001"
SEC_SSRF_FILE_001 = "SEC_SSRF_FILE_001"

# ── Syntax (public) ─────────────────────────────────────────────────
SYN_PARSE_001 = "SYN_PARSE_001"

# ── Buckets ─────────────────────────────────────────────────────────

PUBLIC_RULE_IDS: list[str] = sorted([
    # Code execution
    SEC_EVAL_001,
    SEC_EXEC_001,
    SEC_SHELL_EXEC_001,
    SEC_SYSTEM_001,
    SEC_PASSTHRU_001,
    SEC_PROC_OPEN_001,
    SEC_BACKTICK_001,
    # SQL injection
    SEC_SQL_CONCAT_001,
    SEC_MYSQL_QUERY_001,
    SEC_MYSQLI_CONCAT_001,
    # XSS
    SEC_XSS_ECHO_001,
    SEC_XSS_PRINT_001,
    # Inclusion / deserialization / upload
    SEC_FILE_INCLUSION_001,
    SEC_UNSERIALIZE_001,
    SEC_UPLOAD_DEST_001,
    # Secrets
    SEC_HARDCODED_PASSWORD_001,
    SEC_HARDCODED_API_KEY_001,
    # Disclosure
    SEC_PHPINFO_001,
    SEC_VAR_DUMP_001,
    # Weak hashing
    SEC_WEAK_HASH_MD5_001,
    SEC_WEAK_HASH_SHA1_001,
    # SSRF
    SEC_SSRF_CURL_001,
    SEC_SSRF_FILE_001,
    # Syntax
    SYN_PARSE_001,
])


def _assert_rule_registry_invariants() -> None:
    """Fail fast on invariant violations.

    Called at import time so CI and local runs catch issues immediately.
    """
    import re

    # Pattern matches multi-segment IDs like SEC_WEAK_HASH_MD5_001
    rule_re = re.compile(r"^[A-Z]{2,4}_[A-Z][A-Z0-9_]*_[0-9]{3}$")

    ids = PUBLIC_RULE_IDS
    if ids != sorted(ids):
        raise AssertionError("PUBLIC_RULE_IDS must be sorted")
    if len(ids) != len(set(ids)):
        raise AssertionError("PUBLIC_RULE_IDS must contain unique IDs")
    bad = [x for x in ids if not rule_re.match(x)]
    if bad:
        raise AssertionError(f"PUBLIC_RULE_IDS contains invalid rule IDs: {bad}")


_assert_rule_registry_invariants()
