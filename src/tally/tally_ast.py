"""
Defines the abstract syntax tree (AST) node structure for the TALLY language.

Classes:
    ASTNode:
        Base node with a kind, an optional scalar value, owned children, and the
        source position of the token that introduced it.

    ASTDict:
        TypedDict representation for serializing ASTNode instances to plain
        dictionaries, suitable for JSON output (`tally --ast`) or debugging.

    Expression nodes:
        Number, Variable, Plus, Minus, Asterisk, Slash, Power, Factorial, Group, Empty

    Statement nodes:
        ExpressionStatement, Assignment, Print

Trees are built once by the parser and never mutated: children are stored as a
tuple, and each node is owned by exactly one parent.

Example:
    node = Plus(Number(1.0), Number(2.0))
    node.to_dict()["kind"]  # "plus"
"""

from typing import Any, TypedDict


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an ASTNode used for serialization.

    Fields:
        kind (str): The type of AST node (e.g., "plus", "assign", "print").
        value (Any): The node's scalar value: a float literal or a name.
        line (int): Line number in the source code where the node originates.
        col (int): Column number in the source code where the node originates.
        children (List[ASTDict]): Owned child nodes, in order.
    """

    kind: str
    value: Any
    line: int
    col: int
    children: list["ASTDict"]


class ASTNode:
    """
    Represents a node in the abstract syntax tree (AST) for the TALLY language.

    Args:
        kind (str): The type of node (e.g., "number", "plus", "assign").
        value (str | float, optional): A literal value or a variable name.
        children (tuple[ASTNode, ...], optional): Owned child nodes.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
    """

    kind = "node"

    def __init__(
        self,
        kind: str,
        value: str | float | None = None,
        children: tuple["ASTNode", ...] = (),
        line: int = 0,
        col: int = 0,
    ):
        self.kind = kind
        self.value = value
        self.children: tuple["ASTNode", ...] = tuple(children)
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.value is not None:
            parts.append(f"value={repr(self.value)}")
        if self.children:
            parts.append(f"children=[{', '.join(repr(c) for c in self.children)}]")
        return f"ASTNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ASTNode):
            return False
        return (
            self.kind == other.kind
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.children == other.children
        )

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "value": self.value,
            "line": self.line,
            "col": self.col,
            "children": [c.to_dict() for c in self.children],
        }


# Expressions


class Number(ASTNode):
    def __init__(self, value: float, line: int = 0, col: int = 0):
        super().__init__("number", float(value), line=line, col=col)


class Variable(ASTNode):
    def __init__(self, name: str, line: int = 0, col: int = 0):
        super().__init__("variable", name, line=line, col=col)

    @property
    def name(self) -> str:
        return str(self.value)


class BinaryNode(ASTNode):
    """A node owning exactly two operands; subclasses fix the kind."""

    def __init__(self, left: ASTNode, right: ASTNode, line: int = 0, col: int = 0):
        super().__init__(self.kind, children=(left, right), line=line, col=col)

    @property
    def left(self) -> ASTNode:
        return self.children[0]

    @property
    def right(self) -> ASTNode:
        return self.children[1]


class Plus(BinaryNode):
    kind = "plus"


class Minus(BinaryNode):
    kind = "minus"


class Asterisk(BinaryNode):
    kind = "asterisk"


class Slash(BinaryNode):
    kind = "slash"


class Power(BinaryNode):
    kind = "power"

    @property
    def base(self) -> ASTNode:
        return self.children[0]

    @property
    def exponent(self) -> ASTNode:
        return self.children[1]


class UnaryNode(ASTNode):
    """A node owning a single operand."""

    def __init__(self, operand: ASTNode, line: int = 0, col: int = 0):
        super().__init__(self.kind, children=(operand,), line=line, col=col)

    @property
    def operand(self) -> ASTNode:
        return self.children[0]


class Factorial(UnaryNode):
    kind = "factorial"


class Group(UnaryNode):
    """Parenthesized sub-expression. Evaluates to its inner value."""

    kind = "group"

    @property
    def inner(self) -> ASTNode:
        return self.children[0]


class Empty(ASTNode):
    """The absent expression; evaluates to zero."""

    def __init__(self, line: int = 0, col: int = 0):
        super().__init__("empty", line=line, col=col)


# Statements


class ExpressionStatement(UnaryNode):
    kind = "expr_stmt"

    @property
    def expression(self) -> ASTNode:
        return self.children[0]


class Print(UnaryNode):
    kind = "print"

    @property
    def expression(self) -> ASTNode:
        return self.children[0]


class Assignment(ASTNode):
    def __init__(self, name: str, expression: ASTNode, line: int = 0, col: int = 0):
        super().__init__("assign", name, (expression,), line=line, col=col)

    @property
    def name(self) -> str:
        return str(self.value)

    @property
    def expression(self) -> ASTNode:
        return self.children[0]


Expression = ASTNode
Statement = ExpressionStatement | Assignment | Print

__all__ = [
    "ASTDict",
    "ASTNode",
    "Assignment",
    "Asterisk",
    "BinaryNode",
    "Empty",
    "Expression",
    "ExpressionStatement",
    "Factorial",
    "Group",
    "Minus",
    "Number",
    "Plus",
    "Power",
    "Print",
    "Slash",
    "Statement",
    "UnaryNode",
    "Variable",
]
