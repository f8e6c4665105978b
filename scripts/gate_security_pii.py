#!/usr/bin/env python3
"""Security & PII gate for gateway source files.

Fails if:
- print( found in runtime code (src/**)
- Logger calls mention sender/recipient/text fields without redaction

Usage:
    python scripts/gate_security_pii.py
"""

import re
import sys
from pathlib import Path

# Fields that carry phone numbers, WhatsApp addresses, names or message text
SENSITIVE_KEYWORDS = (
    "sender",
    "remote_jid",
    "notify_name",
    "customer_name",
    "message.body",
    "body.to",
    "body.message",
    "phone",
    "gateway_token",
)

PRINT_PATTERN = re.compile(r"\bprint\s*\(")

LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
    "hash_identifier",
)


def check_file(filepath: Path) -> list[str]:
    """Check a single file for violations. Returns list of error messages."""
    errors = []
    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []

    for lineno, line in enumerate(content.splitlines(), start=1):
        if line.lstrip().startswith("#"):
            continue

        code_part = line.split("#")[0]
        if PRINT_PATTERN.search(code_part):
            errors.append(f"{filepath}:{lineno}: print() not allowed in runtime code")

        if LOGGER_CALL_PATTERN.search(code_part):
            line_lower = code_part.lower()
            for keyword in SENSITIVE_KEYWORDS:
                if keyword in line_lower and not any(
                    rp in code_part for rp in REDACTION_PATTERNS
                ):
                    errors.append(
                        f"{filepath}:{lineno}: logger call with '{keyword}' "
                        "must use redaction (safe_log_context/hash_identifier)"
                    )

    return errors


def check_tree(src_dir: Path) -> list[str]:
    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))
    return all_errors


def main() -> int:
    """Run gate check on src directory."""
    src_dir = Path("src")
    if not src_dir.exists():
        src_dir = Path(__file__).parent.parent / "src"
    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors = check_tree(src_dir)
    if all_errors:
        sys.stderr.write("PII gate FAILED - violations found:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED - no violations found\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
