from enum import Enum

from lmcsrc import *
from typing import Callable



class Severity(Enum):
    HINT  = 0
    ERROR = 1


class DiagKind(Enum):
    DUPLICATE_LABEL           = "DuplicateLabel"
    INVALID_INSTRUCTION       = "InvalidInstruction"
    IMMEDIATE_OUT_OF_RANGE    = "ImmediateOutOfRange"
    NUMERIC_OUT_OF_RANGE      = "NumericOutOfRange"
    MISSING_OPERAND           = "MissingOperand"
    UNDEFINED_LABEL           = "UndefinedLabel"
    UNDEFINED_LABEL_REFERENCE = "UndefinedLabelReference"
    NUMERIC_NEEDS_HASH        = "NumericNeedsHash"
    INCOMPLETE_IMMEDIATE      = "IncompleteImmediate"
    DAT_OPERAND_INVALID       = "DatOperandInvalid"


msg_name = ["Hint", "Error"]
msg_col  = ["\033[35m", "\033[31m"]
no_col   = "\033[0m"

def print_msg(type: Severity, msg: str, loc: Location = None, show: bool = True):
    def _print(type: Severity, msg: str, loc_str: str):
        print(msg_col[type.value] + msg_name[type.value] + " " + loc_str + ": " + msg + no_col)
    if not loc:
        _print(type, msg, "<anonymous>:?")
        return
    _print(type, msg, str(loc))
    if show: loc.show()


class Diagnostic:
    """
    One problem found in a source file.
    `token` is the offending text (the label name for undefined references),
    `candidates` holds replacement mnemonics for invalid instructions.
    """
    def __init__(self, kind: DiagKind, msg: str, loc: Location, token: str = None,
            candidates: list[str] = None, severity: Severity = Severity.ERROR, source: str = "LMC"):
        self.kind       = kind
        self.msg        = msg
        self.loc        = loc
        self.token      = token if token != None else loc.text()
        self.candidates = candidates or []
        self.severity   = severity
        self.source     = source

    def __repr__(self):
        return f"Diagnostic({self.kind}, {repr(self.msg)}, {repr(self.loc)})"

    def __eq__(self, other: object):
        return other is self or (type(other) == Diagnostic and
            (other.kind, other.msg, other.loc, other.token, other.candidates) ==
            (self.kind, self.msg, self.loc, self.token, self.candidates))


class MsgLog:
    """Collects the diagnostics of a single analysis run."""

    def __init__(self, handler: Callable[[Diagnostic], None] = None):
        self.diagnostics: list[Diagnostic] = []
        self.handler = handler

    def __iter__(self):
        return iter(self.diagnostics)

    def __len__(self):
        return len(self.diagnostics)

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    def raise_err(self, kind: DiagKind, msg: str, loc: Location, token: str = None, candidates: list[str] = None):
        diag = Diagnostic(kind, msg, loc, token, candidates)
        self.diagnostics.append(diag)
        if self.handler:
            self.handler(diag)

class LmcError(Exception):
    def __init__(self, msg: str, loc: Location = None):
        Exception.__init__(self, msg)
        self.loc = loc
