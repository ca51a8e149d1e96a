import sys, os, json
from typing import Any, BinaryIO, TextIO

from lmcsrc import *
from lmcerr import *
from lmcinsn import *
from lmcline import *
from lmccheck import *
from lmcfix import *


lsp_severity_map  = {Severity.HINT: 4, Severity.ERROR: 1}
lsp_keyword_kind  = 14
lsp_sync_full     = 1
lsp_log_info      = 3
settings_section  = 'lmc'
default_settings  = {'maxNumberOfProblems': 1000}


def uri_to_file_path(uri: str) -> str:
    if not uri.startswith('file://'): return None
    return uri[7:]

def file_path_to_uri(path: str) -> str:
    path = os.path.abspath(path)
    if os.name == 'nt':
        path = path.replace('\\', '/')
    return 'file://' + path

# LSP columns count UTF-16 code units; Python strings index code points.
def col_to_lsp(text: str, col: int) -> int:
    return len(text[:col].encode('utf-16-le')) // 2 + max(col - len(text), 0)

def col_from_lsp(text: str, units: int) -> int:
    col = 0
    for char in text:
        if units <= 0: break
        units -= 2 if ord(char) > 0xffff else 1
        col   += 1
    return col + max(units, 0)

def line_text(file: SourceFile, line: int) -> str:
    return file.lines[line] if 0 <= line < len(file.lines) else ""

def loc_to_lsp_range(loc: Location) -> dict:
    text = line_text(loc.file, loc.line)
    return {
        'start': {
            'line':      loc.line,
            'character': col_to_lsp(text, loc.col)
        },
        'end': {
            'line':      loc.line,
            'character': col_to_lsp(text, loc.end_col)
        }
    }

def pos_to_lsp(pos: Position, file: SourceFile) -> dict:
    return {'line': pos[0], 'character': col_to_lsp(line_text(file, pos[0]), pos[1])}

def pos_from_lsp(pos: dict, file: SourceFile) -> Position:
    return pos['line'], col_from_lsp(line_text(file, pos['line']), pos['character'])

def lsp_range_to_positions(lsp_range: dict, file: SourceFile) -> tuple[Position,Position]:
    return pos_from_lsp(lsp_range['start'], file), pos_from_lsp(lsp_range['end'], file)

def diag_to_lsp(diag: Diagnostic) -> dict:
    return {
        'range':    loc_to_lsp_range(diag.loc),
        'severity': lsp_severity_map[diag.severity],
        'message':  diag.msg,
        'source':   diag.source,
        'code':     diag.kind.value,
        'data': {
            'token':      diag.token,
            'candidates': diag.candidates,
        },
    }

def diag_from_lsp(obj: dict, file: SourceFile) -> Diagnostic|None:
    """
    Rebuild a diagnostic sent back by the client.
    The kind comes from its `code` and the token from the document text under its range.
    """
    try:
        kind = DiagKind(obj.get('code'))
    except ValueError:
        return None
    (line, col), (end_line, end_col) = lsp_range_to_positions(obj['range'], file)
    if line != end_line or not 0 <= line < len(file.lines):
        return None
    loc   = Location(file, line, col, end_col - col)
    token = loc.text()
    if kind == DiagKind.UNDEFINED_LABEL_REFERENCE and token.startswith('@'):
        token = token[1:]
    data = obj.get('data') or {}
    candidates = data.get('candidates') if type(data) == dict else None
    return Diagnostic(kind, obj.get('message', ''), loc, token,
        candidates if type(candidates) == list else None, source=obj.get('source'))

def text_edit_to_lsp(edit: TextEdit, file: SourceFile) -> dict:
    return {
        'range':   {'start': pos_to_lsp(edit.start, file), 'end': pos_to_lsp(edit.end, file)},
        'newText': edit.new_text,
    }

def code_action_to_lsp(action: CodeAction, file: SourceFile) -> dict:
    return {
        'title':       action.title,
        'kind':        action.kind,
        'diagnostics': [diag_to_lsp(diag) for diag in action.diagnostics],
        'edit': {
            'changes': {
                uri: [text_edit_to_lsp(edit, file) for edit in edits]
                for uri, edits in action.edit.items()
            }
        },
    }

def completion_to_lsp(entry: CompletionEntry) -> dict:
    return {'label': entry.label, 'kind': lsp_keyword_kind, 'data': entry.label}

def merge_settings(settings: Any) -> dict:
    """Client settings over the defaults; values of the wrong type keep their default."""
    merged = dict(default_settings)
    if type(settings) != dict:
        return merged
    limit = settings.get('maxNumberOfProblems')
    if type(limit) == int:
        merged['maxNumberOfProblems'] = limit
    return merged


class Document:
    def __init__(self, uri: str, text: str, version: int = None):
        self.uri      = uri
        self.text     = text
        self.version  = version
        # Per-document settings; None until fetched from the client.
        self.settings: dict|None = None


class LspSession:
    """State of one client connection; created on startup and dropped when the client exits."""

    def __init__(self, rx: BinaryIO, tx: BinaryIO, debug: TextIO = None):
        self.rx    = rx
        self.tx    = tx
        self.debug = debug
        self.initialized    = False
        self.shutdown       = False
        self.exited         = False
        self.has_config_cap = False
        self.has_folder_cap = False
        self.documents: dict[str,Document] = {}
        self.global_settings = dict(default_settings)
        # Outgoing configuration requests awaiting a response, by request id.
        self.pending: dict[int,str] = {}
        self.next_id = 0

    def db_print(self, *args, sep=' ', end='\n'):
        if self.debug == None: return
        self.debug.write(sep.join(str(arg) for arg in args))
        self.debug.write(end)
        self.debug.flush()

    def await_msg(self) -> dict|None:
        """Read one message; returns None at end of input."""
        headers = {}
        while True:
            line = self.rx.readline()
            if not line:
                return None
            line = line.decode('ascii').strip()
            if not line:
                if headers: break
                continue
            idx = line.index(':')
            headers[line[:idx].lower()] = line[idx+1:].strip()
        content_length = int(headers['content-length'])
        raw_data = self.rx.read(content_length)
        obj = json.JSONDecoder().decode(raw_data.decode('utf-8'))
        if type(obj) != dict or obj.get('jsonrpc') != '2.0':
            raise ValueError("Not a JSON-RPC 2.0 message")
        return obj

    def _send(self, obj: dict):
        raw_data = json.JSONEncoder().encode(obj).encode('utf-8')
        self.tx.write(f"Content-Length: {len(raw_data)}\r\n\r\n".encode('ascii'))
        self.tx.write(raw_data)
        self.tx.flush()

    def send_resp_msg(self, id: int, result: Any):
        self._send({"jsonrpc": "2.0", "id": id, "result": result})

    def send_err_msg(self, id: int, err_code: int, err_str: str):
        self._send({"jsonrpc": "2.0", "id": id, "error": {"code": err_code, "message": err_str or f"Error {err_code}"}})

    def send_notif_msg(self, method: str, params: dict|list|None):
        obj = {"jsonrpc": "2.0", "method": method}
        if params != None: obj['params'] = params
        self._send(obj)

    def send_req_msg(self, method: str, params: dict|list|None) -> int:
        self.next_id += 1
        obj = {"jsonrpc": "2.0", "id": self.next_id, "method": method}
        if params != None: obj['params'] = params
        self._send(obj)
        return self.next_id

    def log_message(self, msg: str):
        self.db_print(msg)
        self.send_notif_msg('window/logMessage', {'type': lsp_log_info, 'message': msg})


    def settings_for(self, doc: Document) -> dict:
        return doc.settings if doc.settings != None else self.global_settings

    def fetch_settings(self, doc: Document):
        if not self.has_config_cap: return
        id = self.send_req_msg('workspace/configuration', {
            'items': [{'scopeUri': doc.uri, 'section': settings_section}]
        })
        self.pending[id] = doc.uri

    def diagnose(self, doc: Document) -> list[dict]:
        diagnostics = analyze(doc.text, doc.uri)
        limit = self.settings_for(doc)['maxNumberOfProblems']
        return [diag_to_lsp(diag) for diag in diagnostics[:max(limit, 0)]]

    def publish(self, doc: Document):
        self.db_print(f"Analyzing {doc.uri} (version {doc.version})")
        params = {'uri': doc.uri, 'diagnostics': self.diagnose(doc)}
        if doc.version != None: params['version'] = doc.version
        self.send_notif_msg('textDocument/publishDiagnostics', params)


    def lsp_initialize(self, id: int, params: dict):
        caps = params.get('capabilities') or {}
        workspace = caps.get('workspace') or {}
        self.has_config_cap = bool(workspace.get('configuration'))
        self.has_folder_cap = bool(workspace.get('workspaceFolders'))
        result_caps = {
            'textDocumentSync':   lsp_sync_full,
            'completionProvider': {'resolveProvider': True},
            'codeActionProvider': {'codeActionKinds': [CodeAction.kind]},
            'hoverProvider':      True,
            'diagnosticProvider': {
                'interFileDependencies': False,
                'workspaceDiagnostics':  False,
            },
        }
        if self.has_folder_cap:
            result_caps['workspace'] = {'workspaceFolders': {'supported': True}}
        self.initialized = True
        self.send_resp_msg(id, {'capabilities': result_caps, 'serverInfo': {'name': 'lmc'}})
        self.db_print("Initialized")

    def lsp_initialized(self):
        if self.has_config_cap:
            self.send_req_msg('client/registerCapability', {'registrations': [{
                'id':     'lmc-configuration',
                'method': 'workspace/didChangeConfiguration',
            }]})

    def lsp_did_open(self, params: dict):
        item = params['textDocument']
        doc  = Document(item['uri'], item['text'], item.get('version'))
        self.documents[doc.uri] = doc
        self.fetch_settings(doc)
        self.publish(doc)

    def lsp_did_change(self, params: dict):
        uri = params['textDocument']['uri']
        doc = self.documents.get(uri)
        if not doc:
            self.db_print(f"Change for unopened document {uri}")
            return
        changes = params['contentChanges']
        if not changes: return
        doc.text    = changes[-1]['text']
        doc.version = params['textDocument'].get('version')
        self.publish(doc)

    def lsp_did_close(self, params: dict):
        uri = params['textDocument']['uri']
        self.documents.pop(uri, None)
        self.send_notif_msg('textDocument/publishDiagnostics', {'uri': uri, 'diagnostics': []})

    def lsp_did_change_configuration(self, params: dict):
        if self.has_config_cap:
            for doc in self.documents.values():
                doc.settings = None
                self.fetch_settings(doc)
        else:
            settings = params.get('settings')
            self.global_settings = merge_settings(settings.get(settings_section) if type(settings) == dict else None)
        for doc in self.documents.values():
            self.publish(doc)

    def lsp_response(self, id: int, result: Any):
        uri = self.pending.pop(id, None)
        doc = self.documents.get(uri) if uri else None
        if not doc: return
        settings = result[0] if type(result) == list and result else None
        doc.settings = merge_settings(settings)
        self.publish(doc)

    def lsp_document_diagnostic(self, id: int, uri: str):
        doc = self.documents.get(uri)
        if not doc:
            path = uri_to_file_path(uri)
            if not path:
                self.send_err_msg(id, -32602, f"Cannot convert {uri} to a path")
                return
            try:
                with open(path, "r") as fd:
                    doc = Document(uri, fd.read())
            except FileNotFoundError:
                self.send_err_msg(id, -32803, f"File not found: {path}")
                return
        self.send_resp_msg(id, {'kind': 'full', 'items': self.diagnose(doc)})

    def lsp_completion(self, id: int):
        self.send_resp_msg(id, [completion_to_lsp(entry) for entry in complete()])

    def lsp_completion_resolve(self, id: int, item: dict):
        for entry in complete():
            if entry.label == item.get('data', item.get('label')):
                item['detail']        = entry.detail
                item['documentation'] = entry.doc
                break
        self.send_resp_msg(id, item)

    def lsp_code_action(self, id: int, params: dict):
        uri = params['textDocument']['uri']
        doc = self.documents.get(uri)
        if not doc:
            self.send_resp_msg(id, [])
            return
        file  = SourceFile(doc.text, uri)
        diags = [diag_from_lsp(obj, file) for obj in (params.get('context') or {}).get('diagnostics', [])]
        req_range = lsp_range_to_positions(params['range'], file) if 'range' in params else None
        actions = suggest_fixes(doc.text, None, [diag for diag in diags if diag], req_range, uri)
        self.send_resp_msg(id, [code_action_to_lsp(action, file) for action in actions])

    def lsp_hover(self, id: int, uri: str, position: dict):
        doc = self.documents.get(uri)
        if not doc:
            self.send_resp_msg(id, None)
            return
        line_no = position['line']
        file    = SourceFile(doc.text, uri)
        if line_no >= len(file.lines):
            self.send_resp_msg(id, None)
            return
        line = parse_line(file, line_no)
        loc  = line.mnemonic_loc if line else None
        char = col_from_lsp(file.lines[line_no], position['character'])
        if not loc or not loc.col <= char <= loc.end_col or line.mnemonic not in insn_docs:
            self.send_resp_msg(id, None)
            return
        operand, doc_str = insn_docs[line.mnemonic]
        markdown  = '```lmc\n'
        markdown += f"{line.mnemonic} {operand}".strip()
        markdown += '\n```\n'
        markdown += doc_str
        self.send_resp_msg(id, {
            'contents': {'kind': 'markdown', 'value': markdown},
            'range':    loc_to_lsp_range(loc),
        })


    def dispatch(self, msg: dict):
        method = msg.get('method')
        id     = msg.get('id')
        params = msg.get('params') or {}

        if method == None:
            # Response to one of our requests.
            self.lsp_response(id, msg.get('result'))
            return

        if not self.initialized:
            if method == 'initialize':
                self.lsp_initialize(id, params)
            elif method == 'exit':
                self.exited = True
            elif id != None:
                self.db_print("Message before LSP was initialized")
                self.send_err_msg(id, -32002, "LSP not initialized")
            return

        try:
            match method:
                case 'initialize':
                    self.db_print("LSP was already initialized")
                    self.send_err_msg(id, -32600, "LSP was already initialized")
                case 'initialized':
                    self.lsp_initialized()
                case 'shutdown':
                    self.shutdown = True
                    self.send_resp_msg(id, None)
                case 'exit':
                    self.exited = True
                case 'textDocument/didOpen':
                    self.lsp_did_open(params)
                case 'textDocument/didChange':
                    self.lsp_did_change(params)
                case 'textDocument/didClose':
                    self.lsp_did_close(params)
                case 'textDocument/didSave':
                    pass
                case 'workspace/didChangeConfiguration':
                    self.lsp_did_change_configuration(params)
                case 'workspace/didChangeWatchedFiles':
                    self.log_message("We received a file change event")
                case 'textDocument/diagnostic':
                    self.lsp_document_diagnostic(id, params['textDocument']['uri'])
                case 'textDocument/completion':
                    self.lsp_completion(id)
                case 'completionItem/resolve':
                    self.lsp_completion_resolve(id, params)
                case 'textDocument/codeAction':
                    self.lsp_code_action(id, params)
                case 'textDocument/hover':
                    self.lsp_hover(id, params['textDocument']['uri'], params['position'])
                case _:
                    self.db_print(f"Method {method} not supported")
                    if id != None:
                        self.send_err_msg(id, -32601, f"Method {method} not supported")
        except (KeyError, TypeError) as e:
            self.db_print(f"Invalid params for {method}: {e!r}")
            if id != None:
                self.send_err_msg(id, -32602, f"Invalid params for {method}")

    def run(self):
        self.db_print("Waiting for initialize request")
        while not self.exited:
            try:
                msg = self.await_msg()
            except (ValueError, KeyError) as e:
                self.db_print(f"Malformed message: {e!r}")
                continue
            if msg == None: break
            self.dispatch(msg)
        self.db_print("Exiting")


def lsp_main(debug: TextIO = None) -> int:
    session = LspSession(sys.stdin.buffer, sys.stdout.buffer, debug)
    session.run()
    return 0 if session.shutdown or not session.exited else 1
