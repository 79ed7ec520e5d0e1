"""
Security rule tables.

A Rule is a category plus a compiled pattern, optionally excused when a
cautionary word ("never", "avoid", ...) appears earlier on the same line.
A RuleCheck binds a rule category to the text it scans, the content types
it runs for and whether protective framing switches it off. Policy lives in
the check tables; matching lives in Rule.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence

from pattern_hub.moderation.results import INSTRUCTIONAL_TYPES, ContentType


class Target(str, Enum):
    """Which text a check runs against."""
    FULL_TEXT = "full_text"        # title + description + content, case-folded
    RAW_CONTENT = "raw_content"    # content as submitted
    BOTH = "both"


def _words(*words: str) -> "re.Pattern[str]":
    return re.compile("|".join(words), re.IGNORECASE)


DONT = r"don['’]t"


@dataclass(frozen=True)
class Rule:
    category: str
    pattern: "re.Pattern[str]"
    unless_preceded_by: Optional["re.Pattern[str]"] = None

    def matches(self, text: str) -> bool:
        """True if the pattern matches somewhere not excused by a cautionary prefix."""
        pos = 0
        while True:
            match = self.pattern.search(text, pos)
            if match is None:
                return False
            if not self._is_excused(text, match.start()):
                return True
            # Any later match on this line shares the excusing prefix
            next_line = text.find("\n", match.start())
            if next_line == -1:
                return False
            pos = next_line + 1

    def _is_excused(self, text: str, start: int) -> bool:
        if self.unless_preceded_by is None:
            return False
        line_start = text.rfind("\n", 0, start) + 1
        return bool(self.unless_preceded_by.search(text, line_start, start))


def _rule(category: str, pattern: str, unless: Optional["re.Pattern[str]"] = None,
          flags: int = re.IGNORECASE) -> Rule:
    return Rule(category, re.compile(pattern, flags), unless)


# ============================================================================
# BLOCK rules - any match rejects the submission
# ============================================================================

BLOCK_RULES: Dict[str, List[Rule]] = {
    "spam": [
        _rule("spam", r"BUY\s+NOW.*(?:CLICK|MONEY|FREE).*(?:URGENT|LIMITED|TODAY)"),
        _rule("spam", r"MAKE\s+\$\d+.*(?:TODAY|FAST|EASY|GUARANTEED)"),
        _rule("spam", "\U0001F525{3,}.*\U0001F4B0.*\U0001F680|\U0001F4B0{3,}.*\U0001F525.*\U0001F680", flags=0),
    ],
    "malicious_instructions": [
        _rule("malicious_instructions",
              r"(?:please|now|help\s+me).*(?:delete|wipe|destroy).*(?:entire|all|everything).*(?:system|computer|files)"),
        _rule("malicious_instructions", r"(?:use|run).*(?:malware|virus|trojan|ransomware|keylogger)"),
        _rule("malicious_instructions",
              r"(?:steal|extract|exfiltrate).*(?:passwords|credentials|private.*keys|personal.*data)"),
        _rule("malicious_instructions", r"(?:create|install|setup).*(?:backdoor|rootkit|botnet)"),
    ],
    "gibberish": [
        _rule("gibberish", r"^(.)\1{15,}$", flags=0),
        _rule("gibberish", r"[^\w\s.,!?-]{15,}", flags=0),
        # Shouting is only detectable before case-folding
        _rule("gibberish", r"^[A-Z\s!]{40,}$", flags=0),
        _rule("gibberish", r"^\s*$", flags=0),
    ],
    "phishing": [
        _rule("phishing", r"(?:please|now|immediately)\s+enter\s+your\s+(?:password|credit|ssn)"),
        _rule("phishing", r"login\s+with\s+your\s+(?:github|google|account)\s+(?:now|here|below)"),
        _rule("phishing", r"click\s+(?:here|now|below)\s+to\s+(?:verify|confirm|login)"),
    ],
    "malicious_urls": [
        _rule("malicious_urls", r"https?://(?:bit\.ly|tinyurl)/[a-z0-9]+.*(?:free|money|urgent)"),
        _rule("malicious_urls",
              r"https?://(?!127\.0\.0\.1|localhost)[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}.*(?:download|install|free)"),
        _rule("malicious_urls", r"\.(?:tk|ml|ga|cf)/.*(?:download|free|money)"),
    ],
}

# Checked in this order; the first matching category wins
BLOCK_ORDER = ("spam", "malicious_instructions", "gibberish", "phishing", "malicious_urls")

BLOCK_MESSAGES: Dict[str, str] = {
    "spam": "Content appears to be spam or promotional material",
    "malicious_instructions": "Content contains instructions that could lead to harmful actions",
    "gibberish": "Content appears to be low-quality or gibberish",
    "phishing": "Content contains suspicious requests for personal information",
    "malicious_urls": "Content contains suspicious or potentially malicious URLs",
}

DEFAULT_BLOCK_MESSAGE = "Content violates community guidelines"


# ============================================================================
# WARN rules - matches are surfaced to the submitter and stored as a flag
# ============================================================================

_NEVER = _words("never", DONT, "avoid")
_NEVER_PREVENT = _words("never", DONT, "avoid", "prevent")
_SHELL_EXCUSE = _words("avoid", "never", DONT, "prevent", "block")
_PIPE_EXCUSE = _words("avoid", "never", DONT, "example", "bad")
_GUARDED = _words("avoid", "protect", "secure")

WARN_RULES: Dict[str, List[Rule]] = {
    "dangerous_shell": [
        _rule("dangerous_shell", r"rm\s+-rf\s+(?!/tmp/safe|/var/tmp)", _SHELL_EXCUSE),
        _rule("dangerous_shell", r"sudo\s+rm\s+-rf", _NEVER),
        _rule("dangerous_shell", r"dd\s+if=/dev/(?!null)(?!zero)"),
        _rule("dangerous_shell", r"curl[^|]*\|\s*sh", _PIPE_EXCUSE),
        _rule("dangerous_shell", r"wget[^|]*\|\s*sh", _PIPE_EXCUSE),
        _rule("dangerous_shell", r"eval\s*\([^)]*(?:input|user|request)", _NEVER),
        _rule("dangerous_shell", r"exec\s*\([^)]*(?:input|user|request)", _NEVER),
    ],
    "dangerous_instructions": [
        _rule("dangerous_instructions",
              r"(?:delete|remove)\s+(?:all|entire|everything).*(?:directory|folder|files?)", _NEVER_PREVENT),
        _rule("dangerous_instructions", r"(?:run|execute).*rm\s+-rf", _NEVER),
        _rule("dangerous_instructions", r"(?:use|run)\s+bash.*(?:delete|remove|wipe)", _NEVER),
        _rule("dangerous_instructions", r"(?:download|fetch).*(?:pipe|\||execute).*(?:sh|bash)", _NEVER),
        _rule("dangerous_instructions", r"(?:install|run).*(?:malware|virus|backdoor|keylogger)", _NEVER),
        _rule("dangerous_instructions",
              r"(?:send|transmit|upload).*(?:sensitive|private|secret|password|key).*(?:data|information)", _NEVER),
        _rule("dangerous_instructions",
              r"(?:access|read|steal).*(?:/etc/passwd|/etc/shadow|private.*key|credentials)", _NEVER),
    ],
    "sensitive_paths": [
        _rule("sensitive_paths", r"/etc/(?:passwd|shadow)(?!.*(?:safe|example|demo))",
              _words("avoid", "protect", "secure", "block")),
        _rule("sensitive_paths", r"/home/[^/]*/\.ssh(?!.*(?:example|demo))", _GUARDED),
        _rule("sensitive_paths", r"~/\.(?:aws|docker)(?!.*(?:safe|example|demo))", _GUARDED),
        _rule("sensitive_paths", r"/var/log/.*\.log.*(?:cat|tail|head|grep)"),
    ],
    "network_access": [
        _rule("network_access", r"(?:localhost|127\.0\.0\.1):\d+.*(?:curl|wget|nc|netcat)",
              _words("dev", "development", "local", "test")),
        _rule("network_access", r"192\.168\.\d+\.\d+.*(?:ssh|scp|rsync)(?!.*(?:backup|sync|deploy))"),
        _rule("network_access", r"nc\s+-[a-z]*l.*(?:shell|backdoor)", _words("avoid", "example")),
    ],
    "secrets_handling": [
        _rule("secrets_handling", r"(?:password|secret|token)\s*=\s*[\"'][^\"']{8,}[\"']"),
        _rule("secrets_handling", r"(?:api_key|private_key|client_secret)\s*[:=]\s*[\"'][^\"']{10,}[\"']",
              _words("example", "demo", "test", "placeholder")),
        _rule("secrets_handling", r"\.env.*(?:AWS|API|SECRET|KEY)(?!.*(?:example|demo))",
              _words("example", "demo", "safe")),
    ],
    "data_exfil": [
        _rule("data_exfil", r"base64\s+[A-Za-z0-9+/]{20,}\s*\|\s*curl.*(?:http|ftp)"),
        _rule("data_exfil", r"curl\s+-X\s+POST.*--data.*(?:password|token|key|secret)"),
        _rule("data_exfil", r"wget.*--post-data.*\$\(.*\)|wget.*--post-data.*`.*`"),
    ],
    "command_deletion": [
        _rule("command_deletion", r"Bash\([^)]*rm\s+-rf[^)]*\)|!\s*`[^`]*rm\s+-rf[^`]*`"),
    ],
}


@dataclass(frozen=True)
class RuleCheck:
    """Runs one WARN rule category against one target for a set of content types."""
    category: str
    label: str
    target: Target
    content_types: Optional[FrozenSet[str]] = None
    honors_protective: bool = False

    def applies_to(self, content_type: str) -> bool:
        return self.content_types is None or content_type in self.content_types

    def matches(self, full_text: str, content: str) -> bool:
        texts: Sequence[str]
        if self.target is Target.FULL_TEXT:
            texts = (full_text,)
        elif self.target is Target.RAW_CONTENT:
            texts = (content,)
        else:
            texts = (full_text, content)
        return any(rule.matches(text) for rule in WARN_RULES[self.category] for text in texts)


_HOOK = frozenset({ContentType.HOOK.value})
_COMMAND = frozenset({ContentType.COMMAND.value})

WARN_CHECKS: List[RuleCheck] = [
    # Hooks run directly as shell
    RuleCheck("dangerous_shell", "dangerous shell commands", Target.RAW_CONTENT, _HOOK),
    RuleCheck("sensitive_paths", "sensitive file access", Target.RAW_CONTENT, _HOOK),
    # Commands are documented workflows: only explicit deletions count
    RuleCheck("command_deletion", "contains file deletion commands", Target.RAW_CONTENT, _COMMAND,
              honors_protective=True),
    # Instructional content may be followed literally by an agent
    RuleCheck("dangerous_instructions", "dangerous instructions", Target.FULL_TEXT, INSTRUCTIONAL_TYPES),
    RuleCheck("dangerous_shell", "shell command instructions", Target.FULL_TEXT, INSTRUCTIONAL_TYPES),
    # Universal
    RuleCheck("network_access", "suspicious network access", Target.FULL_TEXT, honors_protective=True),
    RuleCheck("secrets_handling", "credential handling", Target.FULL_TEXT, honors_protective=True),
    RuleCheck("data_exfil", "potential data transmission", Target.RAW_CONTENT, honors_protective=True),
]

INSTRUCTION_WARNING_PREFIX = "Contains instructions for potentially dangerous actions: "
SECURITY_WARNING_PREFIX = "Contains potentially dangerous patterns: "

PROTECTIVE_CONTEXT = re.compile(
    r"(?:prevent|protect|safe|validate|security|block|avoid|example|demo|tutorial|learn|educational"
    r"|how\s+to\s+(?:avoid|prevent)|never\s+(?:do|use|run)|" + DONT + r"\s+(?:do|use|run))",
    re.IGNORECASE,
)


def is_protective(text: str) -> bool:
    """True when the text frames dangerous material cautionarily or educationally."""
    return bool(PROTECTIVE_CONTEXT.search(text))
