import re

from typing_extensions import Self

line_break_re = re.compile(r"\r\n|\r|\n")

def split_lines(raw: str) -> list[str]:
    return line_break_re.split(raw)

class SourceFile:
    def __init__(self, content: str, name: str = None, path: str = None):
        self.content = content
        self.name    = name or "<anonymous>"
        self.path    = path or self.name
        self.lines   = split_lines(content)

    def is_blank(self) -> bool:
        return self.content.strip() == ""

    def end_location(self) -> "Location":
        """Zero-length location just past the last character of the file."""
        return Location(self, len(self.lines)-1, len(self.lines[-1]), 0)

class Location:
    """A span on a single line; `line` and `col` are zero-based."""

    def __init__(self, file: SourceFile, line: int, col: int, len: int = 1):
        self.file = file
        self.line = line
        self.col  = col
        self.len  = len

    def __str__(self):
        return f"{self.file.name}:{self.line+1}:{self.col+1}"

    def __repr__(self):
        return f"Location(file <{repr(self.file.name)}>, {self.line}, {self.col}, {self.len})"

    def __eq__(self, other: Self):
        return other is self or (type(other) == Location and
            (other.line, other.col, other.len) == (self.line, self.col, self.len))

    def __hash__(self):
        return hash((self.line, self.col, self.len))

    @property
    def end_col(self) -> int:
        return self.col + self.len

    def text(self) -> str:
        return self.file.lines[self.line][self.col:self.end_col]

    def show(self):
        line = self.file.lines[self.line]
        print(f"{self.line+1:4d} | {line}")
        print("     | " + ' ' * self.col + '^' + '~' * (self.len-1))

    def copy(self) -> Self:
        return Location(self.file, self.line, self.col, self.len)

    def with_len(self, len: int) -> Self:
        new = self.copy()
        new.len = len
        return new

    def end(self) -> Self:
        return Location(self.file, self.line, self.end_col, 0)

    def overlaps(self, start: tuple[int,int], end: tuple[int,int]) -> bool:
        """Whether this span touches the zero-based `[start, end]` position range."""
        return (self.line, self.col) <= end and start <= (self.line, self.end_col)
