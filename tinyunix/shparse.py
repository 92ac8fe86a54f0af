"""Parser for shell command lines: pipes, lists, background jobs, redirections and blocks."""

import enum
from dataclasses import dataclass, field

from .ulib import gets

MAXARGS = 10
_WHITESPACE = " \t\r\n\v"
_SYMBOLS = "<|>&;()"
_SIMPLE_TOKENS = "|();&<"


class OpenFlag(enum.IntFlag):
    """Flags used when a redirection opens its file."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""

    def __init__(self, message, leftovers=None):
        super().__init__(message)
        self.leftovers = leftovers


@dataclass
class ExecCmd:
    """Run a program with its arguments."""

    argv: list = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with file descriptor ``fd`` replaced by ``file`` opened with ``mode``."""

    cmd: object
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: object
    right: object


@dataclass
class ListCmd:
    """Run ``left``, wait for it, then run ``right``."""

    left: object
    right: object


@dataclass
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: object


class _Parser:
    def __init__(self, line):
        self.line = line.split("\0", 1)[0]
        self.pos = 0

    def _skip_whitespace(self):
        while self.pos < len(self.line) and self.line[self.pos] in _WHITESPACE:
            self.pos += 1

    def at_end(self):
        self._skip_whitespace()
        return self.pos >= len(self.line)

    def peek(self, tokens):
        self._skip_whitespace()
        return self.pos < len(self.line) and self.line[self.pos] in tokens

    def gettoken(self):
        """Return (kind, text); kind is "" at the end of the line."""
        self._skip_whitespace()
        line = self.line
        start = self.pos
        if start >= len(line):
            return "", ""
        ch = line[start]
        pos = start + 1
        if ch in _SIMPLE_TOKENS:
            kind = ch
        elif ch == ">":
            kind = ">"
            if pos < len(line) and line[pos] == ">":
                kind = "+"
                pos += 1
        else:
            kind = "a"
            while pos < len(line) and line[pos] not in _WHITESPACE and line[pos] not in _SYMBOLS:
                pos += 1
        self.pos = pos
        self._skip_whitespace()
        return kind, line[start:pos]

    def parse_line(self):
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.gettoken()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.gettoken()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self):
        cmd = self.parse_exec()
        if self.peek("|"):
            self.gettoken()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd):
        while self.peek("<>"):
            kind, _ = self.gettoken()
            file_kind, name = self.gettoken()
            if file_kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCmd(cmd, name, OpenFlag.RDONLY, 0)
            elif kind == ">":
                cmd = RedirCmd(cmd, name, OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC, 1)
            else:
                cmd = RedirCmd(cmd, name, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def parse_block(self):
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.gettoken()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.gettoken()
        return self.parse_redirs(cmd)

    def parse_exec(self):
        if self.peek("("):
            return self.parse_block()
        exec_cmd = ExecCmd()
        cmd = self.parse_redirs(exec_cmd)
        while not self.peek("|)&;"):
            kind, word = self.gettoken()
            if kind == "":
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(word)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            cmd = self.parse_redirs(cmd)
        return cmd


def parse_command(line):
    """Parse a command line into a tree of command objects.

    Raises ShellSyntaxError when the line is malformed.
    """
    parser = _Parser(line)
    cmd = parser.parse_line()
    if not parser.at_end():
        raise ShellSyntaxError("syntax", leftovers=parser.line[parser.pos:])
    return cmd


def getcmd(stream, out, limit=100):
    """Prompt on ``out`` and read one line from ``stream``; return None at end of input."""
    out.write("$ ")
    if hasattr(out, "flush"):
        out.flush()
    line = gets(stream, limit)
    if not line:
        return None
    return line