"""
Lightweight shell script scanner for hook scripts.

Not a parser: it tracks quoting, comments and heredocs well enough to find
unterminated quotes, unbalanced parentheses, dangling operators and
unquoted positional parameters.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

HEREDOC_START = re.compile(r"<<-?\s*(['\"]?)([A-Za-z_][A-Za-z0-9_]*)\1")
CASE_STATEMENT = re.compile(r"\bcase\b[^\n]*\bin\b")
POSITIONAL = set("123456789@*")
COMMENT_BOUNDARY = set(" \t;|&(")


@dataclass
class ShellScan:
    open_quote: Optional[str] = None
    paren_depth: int = 0
    stray_close_paren: bool = False
    has_case: bool = False
    unquoted_positional: List[str] = field(default_factory=list)
    last_code_line: str = ""

    @property
    def parens_balanced(self) -> bool:
        return self.has_case or (self.paren_depth == 0 and not self.stray_close_paren)

    def dangling_operator(self) -> Optional[str]:
        line = self.last_code_line
        for op in ("&&", "||", "|"):
            if line.endswith(op):
                return op
        return None


def scan_shell_script(script: str) -> ShellScan:
    scan = ShellScan(has_case=bool(CASE_STATEMENT.search(script)))
    quote: Optional[str] = None
    lines = script.split("\n")
    i = 0

    while i < len(lines):
        line = lines[i]
        heredoc: Optional[str] = None
        code_end = len(line)
        j = 0

        while j < len(line):
            ch = line[j]
            if quote == "'":
                if ch == "'":
                    quote = None
                j += 1
                continue
            if ch == "\\":
                j += 2
                continue
            if quote == '"':
                if ch == '"':
                    quote = None
                j += 1
                continue

            if ch in ("'", '"'):
                quote = ch
            elif ch == "#" and (j == 0 or line[j - 1] in COMMENT_BOUNDARY):
                code_end = j
                break
            elif ch == "(":
                scan.paren_depth += 1
            elif ch == ")":
                if scan.paren_depth == 0:
                    scan.stray_close_paren = True
                else:
                    scan.paren_depth -= 1
            elif ch == "$":
                param = _positional_at(line, j)
                if param and param not in scan.unquoted_positional:
                    scan.unquoted_positional.append(param)
            elif ch == "<" and heredoc is None and line.startswith("<<", j):
                match = HEREDOC_START.match(line, j)
                if match:
                    heredoc = match.group(2)
                    j = match.end()
                    continue
            j += 1

        code = line[:code_end].strip()
        if code and quote is None:
            scan.last_code_line = code

        i += 1
        if heredoc:
            while i < len(lines) and lines[i].strip() != heredoc:
                i += 1
            i += 1

    scan.open_quote = quote
    return scan


def _positional_at(line: str, index: int) -> Optional[str]:
    rest = line[index + 1:index + 4]
    if rest[:1] in POSITIONAL:
        return "$" + rest[0]
    if rest[:1] == "{" and rest[1:2] in POSITIONAL and rest[2:3] == "}":
        return "${" + rest[1] + "}"
    return None
