import io
import json

import pytest

from lmclsp import LspSession


def _frame(obj: dict) -> bytes:
    body = json.dumps(obj).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def _unframe(raw: bytes) -> list[dict]:
    out = []
    while raw:
        header, _, rest = raw.partition(b"\r\n\r\n")
        length = int(header.decode("ascii").split(":", 1)[1])
        out.append(json.loads(rest[:length].decode("utf-8")))
        raw = rest[length:]
    return out


def _apply_edits(text: str, edits) -> str:
    lines = text.split("\n")

    def offset(pos):
        line, col = pos
        return sum(len(l) + 1 for l in lines[:line]) + col

    for edit in sorted(edits, key=lambda e: offset(e.start), reverse=True):
        text = text[: offset(edit.start)] + edit.new_text + text[offset(edit.end) :]
    return text


@pytest.fixture
def apply_edits():
    return _apply_edits


@pytest.fixture
def run_session():
    """Feed messages through a fresh session; returns (session, messages written by the server)."""

    def run(messages, capabilities=None, initialize=True):
        prefix = []
        if initialize:
            prefix = [
                {"jsonrpc": "2.0", "id": 0, "method": "initialize", "params": {"capabilities": capabilities or {}}},
                {"jsonrpc": "2.0", "method": "initialized", "params": {}},
            ]
        rx = io.BytesIO(b"".join(_frame(msg) for msg in prefix + list(messages)))
        tx = io.BytesIO()
        session = LspSession(rx, tx)
        session.run()
        return session, _unframe(tx.getvalue())

    return run


@pytest.fixture
def frame():
    return _frame
