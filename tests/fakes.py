# tests/fakes.py
"""
Stand-ins for the ``cppcheckdata`` object graph.

Only the attributes the adapter reads are modelled.  ``TokenStream``
splits source lines into tokens with real line/column positions and
links ``next``/``previous`` and matching brackets; the AST is wired by
hand with :func:`set_ast`.
"""

import re
from typing import Any, List, Optional

_TOKEN_RE = re.compile(r"->|::|\+\+|--|&&|\|\||[A-Za-z_]\w*|\d+|\S")
_OPEN = {"(": ")", "[": "]", "{": "}"}


class FakeValueType:
    def __init__(self, typeScope=None, pointer=0, originalTypeName="", type="record"):
        self.typeScope = typeScope
        self.pointer = pointer
        self.originalTypeName = originalTypeName
        self.type = type


class FakeToken:
    def __init__(self, s: str, file: str = "test.cpp", linenr: int = 1, column: int = 1):
        self.str = s
        self.file = file
        self.linenr = linenr
        self.column = column
        self.next = None
        self.previous = None
        self.link = None
        self.scope = None
        self.astOperand1 = None
        self.astOperand2 = None
        self.astParent = None
        self.variable = None
        self.function = None
        self.valueType = None
        self.originalName = ""
        self.isName = bool(re.match(r"[A-Za-z_]", s))
        self.isNumber = s.isdigit()
        self.isString = False
        self.isChar = False
        self.isBoolean = s in ("true", "false")
        self.isOp = not self.isName and not self.isNumber and s not in ("(", ")", "{", "}", "[", "]", ";")
        self.isCast = False
        self.isExpandedMacro = False
        self.isTemplateArg = False

    def __repr__(self):
        return f"<FakeToken {self.str!r} {self.linenr}:{self.column}>"


class FakeScope:
    def __init__(self, type: str, className: str = "", nestedIn=None,
                 bodyStart=None, bodyEnd=None):
        self.type = type
        self.className = className
        self.nestedIn = nestedIn
        self.bodyStart = bodyStart
        self.bodyEnd = bodyEnd

    def __repr__(self):
        return f"<FakeScope {self.type} {self.className!r}>"


class FakeVariable:
    def __init__(self, nameToken=None, scope=None, isStatic=False, isPointer=False,
                 typeStartToken=None, typeEndToken=None):
        self.nameToken = nameToken
        self.scope = scope
        self.isStatic = isStatic
        self.isPointer = isPointer
        self.typeStartToken = typeStartToken
        self.typeEndToken = typeEndToken


class FakeFunction:
    def __init__(self, name: str, nestedIn=None, isStatic=False):
        self.name = name
        self.nestedIn = nestedIn
        self.isStatic = isStatic


class FakeConfiguration:
    def __init__(self, tokenlist=None, scopes=None, variables=None, functions=None, name=""):
        self.tokenlist = tokenlist or []
        self.scopes = scopes or []
        self.variables = variables or []
        self.functions = functions or []
        self.name = name


class FakeDump:
    def __init__(self, configurations):
        self.configurations = list(configurations)


class TokenStream:
    """Tokenises source lines into one linked token list."""

    def __init__(self, file: str = "test.cpp"):
        self.file = file
        self.tokens: List[FakeToken] = []

    def add_line(self, text: str, linenr: int, scope: Any = None) -> List[FakeToken]:
        added = []
        for m in _TOKEN_RE.finditer(text):
            s = m.group(0)
            tok = FakeToken("." if s == "->" else s, self.file, linenr, m.start() + 1)
            if s == "->":
                tok.originalName = "->"
                tok.isOp = True
            tok.scope = scope
            added.append(tok)
        self.tokens.extend(added)
        self._relink()
        return added

    def _relink(self) -> None:
        stack = []
        for i, tok in enumerate(self.tokens):
            tok.previous = self.tokens[i - 1] if i > 0 else None
            tok.next = self.tokens[i + 1] if i + 1 < len(self.tokens) else None
            if tok.str in _OPEN:
                stack.append(tok)
            elif tok.str in _OPEN.values() and stack and _OPEN[stack[-1].str] == tok.str:
                opener = stack.pop()
                opener.link = tok
                tok.link = opener

    def find(self, s: str, linenr: Optional[int] = None, nth: int = 0) -> FakeToken:
        matches = [t for t in self.tokens
                   if t.str == s and (linenr is None or t.linenr == linenr)]
        return matches[nth]

    def arrow(self, linenr: Optional[int] = None, nth: int = 0) -> FakeToken:
        matches = [t for t in self.tokens
                   if t.originalName == "->" and (linenr is None or t.linenr == linenr)]
        return matches[nth]


def set_ast(parent: FakeToken, op1: Optional[FakeToken] = None,
            op2: Optional[FakeToken] = None) -> FakeToken:
    parent.astOperand1 = op1
    parent.astOperand2 = op2
    for child in (op1, op2):
        if child is not None:
            child.astParent = parent
    return parent


def global_scope() -> FakeScope:
    return FakeScope("Global")


WIDGET_SOURCE = (
    "void g() {\n"
    "  c1.x = 1;\n"
    "  f(1, 2, 3, 4).x;\n"
    "}\n"
)


def widget_configuration(file: str = "widget.cpp", name: str = "") -> FakeConfiguration:
    """
    Configuration for :data:`WIDGET_SOURCE` where ``x`` is a static data
    member of ``struct C``.
    """
    glob = global_scope()
    record = FakeScope("Struct", "C", glob)
    func = FakeScope("Function", "g", glob)
    static_x = FakeVariable(scope=record, isStatic=True)

    ts = TokenStream(file)
    ts.add_line("void g() {", 1, scope=glob)
    ts.add_line("  c1.x = 1;", 2, scope=func)
    ts.add_line("  f(1, 2, 3, 4).x;", 3, scope=func)
    ts.add_line("}", 4, scope=func)

    # c1.x = 1
    c1 = ts.find("c1")
    c1.valueType = FakeValueType(record)
    x2 = ts.find("x", 2)
    x2.variable = static_x
    dot2 = set_ast(ts.find(".", 2), c1, x2)
    set_ast(ts.find("=", 2), dot2, ts.find("1", 2))

    # f(1, 2, 3, 4).x
    args = ts.find("1", 3)
    for nth, value in enumerate(("2", "3", "4")):
        args = set_ast(ts.find(",", 3, nth), args, ts.find(value, 3))
    call = set_ast(ts.find("(", 3), ts.find("f", 3), args)
    call.valueType = FakeValueType(record)
    x3 = ts.find("x", 3)
    x3.variable = static_x
    set_ast(ts.find(".", 3), call, x3)

    return FakeConfiguration(
        tokenlist=ts.tokens,
        scopes=[glob, record, func],
        variables=[static_x],
        name=name,
    )
