"""Security scanner — pattern-based detection of common PHP vulnerabilities.

Plain regular-expression matching over file text, not syntax-aware.
Each rule carries a severity tier and a CWE id; every match becomes one
``Issue`` with the exact 1-based line it starts on.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from evidency_monitor import rules as rule_ids
from evidency_monitor.model import Severity
from evidency_monitor.model.issue import Issue
from evidency_monitor.model.rule import Rule, RuleTable
from evidency_monitor.model.scan_outcome import ScanOutcome
from evidency_monitor.scanners import has_extension, normalize_extensions, relative_to_root

_logger = logging.getLogger(__name__)

_REQUEST = r"\$_(GET|POST|REQUEST)"


# ── Default rule table ──────────────────────────────────────────────

# (rule_id, pattern, flags, severity, message, cwe) in match order.
_DEFAULT_RULES: tuple[tuple[str, str, int, Severity, str, str], ...] = (
    # Code execution
    (rule_ids.SEC_EVAL_001, r"\beval\s*\(", re.IGNORECASE, Severity.CRITICAL,
     "eval() can execute arbitrary code - avoid if possible", "CWE-95"),
    (rule_ids.SEC_EXEC_001, r"\bexec\s*\(", re.IGNORECASE, Severity.HIGH,
     "exec() - ensure input is properly sanitized", "CWE-78"),
    (rule_ids.SEC_SHELL_EXEC_001, r"\bshell_exec\s*\(", re.IGNORECASE, Severity.HIGH,
     "shell_exec() - ensure input is properly sanitized", "CWE-78"),
    (rule_ids.SEC_SYSTEM_001, r"\bsystem\s*\(", re.IGNORECASE, Severity.HIGH,
     "system() - ensure input is properly sanitized", "CWE-78"),
    (rule_ids.SEC_PASSTHRU_001, r"\bpassthru\s*\(", re.IGNORECASE, Severity.HIGH,
     "passthru() - ensure input is properly sanitized", "CWE-78"),
    (rule_ids.SEC_PROC_OPEN_001, r"\bproc_open\s*\(", re.IGNORECASE, Severity.HIGH,
     "proc_open() - ensure input is properly sanitized", "CWE-78"),
    (rule_ids.SEC_BACKTICK_001, r"`[^`]+`", 0, Severity.HIGH,
     "Backtick operator executes shell commands", "CWE-78"),
    # SQL injection
    (rule_ids.SEC_SQL_CONCAT_001, r"\$_(GET|POST|REQUEST|COOKIE)\s*\[[^\]]+\]\s*\.", 0,
     Severity.HIGH, "Possible SQL injection - user input concatenated", "CWE-89"),
    (rule_ids.SEC_MYSQL_QUERY_001, r"\bmysql_query\s*\(", re.IGNORECASE, Severity.MEDIUM,
     "Deprecated mysql_* function - use PDO with prepared statements", "CWE-89"),
    (rule_ids.SEC_MYSQLI_CONCAT_001, r"mysqli_query\s*\([^,]+,\s*[\"'][^\"']*\$", 0,
     Severity.HIGH, "Possible SQL injection in mysqli_query", "CWE-89"),
    # Reflected output
    (rule_ids.SEC_XSS_ECHO_001, r"echo\s+" + _REQUEST + r"\s*\[", 0, Severity.HIGH,
     "Possible XSS - echoing user input without sanitization", "CWE-79"),
    (rule_ids.SEC_XSS_PRINT_001, r"print\s+" + _REQUEST + r"\s*\[", 0, Severity.HIGH,
     "Possible XSS - printing user input without sanitization", "CWE-79"),
    # File inclusion
    (rule_ids.SEC_FILE_INCLUSION_001,
     r"\b(include|require|include_once|require_once)\s*\(\s*\$", 0, Severity.CRITICAL,
     "Possible LFI/RFI - dynamic file inclusion", "CWE-98"),
    # Deserialization
    (rule_ids.SEC_UNSERIALIZE_001, r"\bunserialize\s*\(\s*\$_(GET|POST|REQUEST|COOKIE)", 0,
     Severity.CRITICAL, "Unsafe deserialization of user input", "CWE-502"),
    # Hardcoded credentials
    (rule_ids.SEC_HARDCODED_PASSWORD_001,
     r"(\$password|\$pass|\$pwd)\s*=\s*[\"'][^\"']{3,}[\"']", 0, Severity.MEDIUM,
     "Possible hardcoded password", "CWE-798"),
    (rule_ids.SEC_HARDCODED_API_KEY_001,
     r"api[_-]?key\s*[=:]\s*[\"'][a-zA-Z0-9]{20,}[\"']", 0, Severity.HIGH,
     "Possible hardcoded API key", "CWE-798"),
    # Information disclosure
    (rule_ids.SEC_PHPINFO_001, r"\bphpinfo\s*\(\s*\)", 0, Severity.MEDIUM,
     "phpinfo() exposes sensitive server information", "CWE-200"),
    (rule_ids.SEC_VAR_DUMP_001, r"var_dump\s*\(\s*\$_(GET|POST|REQUEST|SERVER)", 0,
     Severity.LOW, "var_dump of superglobal - may expose sensitive data", "CWE-200"),
    # Weak hashing
    (rule_ids.SEC_WEAK_HASH_MD5_001, r"md5\s*\(\s*\$.*pass", re.IGNORECASE, Severity.HIGH,
     "MD5 is weak for password hashing - use password_hash()", "CWE-328"),
    (rule_ids.SEC_WEAK_HASH_SHA1_001, r"sha1\s*\(\s*\$.*pass", re.IGNORECASE, Severity.HIGH,
     "SHA1 is weak for password hashing - use password_hash()", "CWE-328"),
    # File upload
    (rule_ids.SEC_UPLOAD_DEST_001, r"move_uploaded_file\s*\([^,]+,\s*" + _REQUEST, 0,
     Severity.CRITICAL, "Unsafe file upload - user controls destination", "CWE-434"),
    # SSRF
    (rule_ids.SEC_SSRF_CURL_001,
     r"curl_setopt\s*\([^,]+,\s*CURLOPT_URL\s*,\s*" + _REQUEST, 0, Severity.HIGH,
     "Possible SSRF - user controls URL", "CWE-918"),
    (rule_ids.SEC_SSRF_FILE_001, r"file_get_contents\s*\(\s*" + _REQUEST, 0, Severity.HIGH,
     "Possible SSRF - user controls file/URL", "CWE-918"),
)


def default_rule_table() -> RuleTable:
    """Build a fresh table holding the shipped rules.

    Callers may ``register`` more rules (or replace shipped ones by id)
    before handing the table to an engine.
    """
    table = RuleTable()
    for rule_id, pattern, flags, severity, message, cwe in _DEFAULT_RULES:
        table.register(rule_id, pattern, severity, message, cwe, flags=flags)
    return table


# ── Filename exclusions ─────────────────────────────────────────────

# Administrative / setup / maintenance scripts are skipped by basename.
DEFAULT_SKIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^admin[_-]", re.IGNORECASE),
    re.compile(r"^(setup|install)([_-]\w+)?\.php$", re.IGNORECASE),
    re.compile(r"^maintenance([_-]\w+)?\.php$", re.IGNORECASE),
)


def _compile_skip(patterns: Iterable[Union[str, re.Pattern[str]]]) -> tuple[re.Pattern[str], ...]:
    return tuple(
        p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE) for p in patterns
    )


# ── Engine ──────────────────────────────────────────────────────────


class SecurityAnalysisEngine:
    """Applies an immutable rule snapshot to one file at a time."""

    def __init__(self, rules: Union[RuleTable, Iterable[Rule], None] = None) -> None:
        if rules is None:
            rules = default_rule_table()
        # Snapshot: later registrations on the source table are not seen.
        self._rules: tuple[Rule, ...] = (
            rules.all() if isinstance(rules, RuleTable) else tuple(rules)
        )

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def analyze(self, file_path: Union[str, Path], base_path: Union[str, Path]) -> list[Issue]:
        """Return every rule match in *file_path*, rule order then match order.

        An unreadable file yields no issues.
        """
        path = Path(file_path)
        try:
            # newline="" keeps offsets on the raw text (no \r\n folding).
            with path.open(encoding="utf-8", errors="replace", newline="") as fh:
                content = fh.read()
        except OSError as exc:
            _logger.warning("Could not read %s: %s", path, exc)
            return []
        return self.analyze_text(content, relative_to_root(path, Path(base_path)))

    def analyze_text(self, content: str, rel_path: str) -> list[Issue]:
        """Match every rule against *content*, attributing issues to *rel_path*."""
        issues: list[Issue] = []
        lines: Optional[list[str]] = None

        for rule in self._rules:
            for match in rule.matcher.finditer(content):
                if lines is None:
                    lines = content.split("\n")
                line_number = content.count("\n", 0, match.start()) + 1
                issues.append(Issue(
                    file=rel_path,
                    line=line_number,
                    rule_id=rule.id,
                    severity=rule.severity,
                    message=rule.message,
                    cwe=rule.cwe,
                    code_snippet=lines[line_number - 1].strip(),
                ))

        return issues


# ── Scanner ─────────────────────────────────────────────────────────


class SecurityScanner:
    """Runs the analysis engine over a project's files.

    Files whose extension is not recognized, or whose basename matches a
    skip pattern, are counted as skipped and never read.  Only critical and
    high issues count toward ``warnings``; ``errors`` is always 0.
    """

    name: str = "security"
    version: str = "1.0.0"

    def __init__(
        self,
        engine: Optional[SecurityAnalysisEngine] = None,
        *,
        extensions: Sequence[str] = ("php",),
        skip_patterns: Iterable[Union[str, re.Pattern[str]]] = DEFAULT_SKIP_PATTERNS,
    ) -> None:
        self.engine = engine or SecurityAnalysisEngine()
        self._extensions = normalize_extensions(extensions)
        self._skip_patterns = _compile_skip(skip_patterns)

    def is_excluded(self, path: Union[str, Path]) -> bool:
        """Name-only check; first matching pattern wins."""
        basename = Path(path).name
        return any(p.search(basename) for p in self._skip_patterns)

    def scan(self, root: Path, files: Sequence[Path]) -> ScanOutcome:
        root = Path(root)
        files_checked = 0
        files_skipped = 0
        issues: list[Issue] = []

        for f in files:
            path = Path(f)
            if not has_extension(path, self._extensions) or self.is_excluded(path):
                files_skipped += 1
                continue

            files_checked += 1
            issues.extend(self.engine.analyze(path, root))

        _logger.debug(
            "security: %d checked, %d skipped, %d issues",
            files_checked,
            files_skipped,
            len(issues),
        )
        return ScanOutcome.from_issues(
            self.name,
            issues,
            files_checked=files_checked,
            files_skipped=files_skipped,
            errors=0,
        )
