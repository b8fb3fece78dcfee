"""AST transformer that embeds coverage counters.

This module rewrites Python source so that executing it records hit counts.
Every statement is preceded by a statement counter, every function body
starts with a function counter and every branch path starts with a branch
counter. The counters are method calls on a recorder bound in the module's
globals under the run's coverage variable name.

The generated code is equivalent to:

    _cov.s(0)
    def is_adult(age):
        _cov.f(0)
        _cov.s(1)
        return (_cov.b(0, 0), age >= 18)[1] and (_cov.b(0, 1), age < 130)[1]

Example:
    >>> result = instrument_source('x = 1', '/src/app.py', '_cov')
    >>> result.file_coverage.s
    {0: 0}
    >>> print(result.text)
    _cov.s(0)
    x = 1
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pytest_covrunner.coverage.file_coverage import BranchMapping, FileCoverage, FunctionMapping, Range


if TYPE_CHECKING:
    from collections.abc import Sequence


STATEMENT_COUNTER = 's'
FUNCTION_COUNTER = 'f'
BRANCH_COUNTER = 'b'


def node_range(node: ast.AST) -> Range:
    """Return the source range covered by a located AST node."""
    lineno: int = getattr(node, 'lineno', 1)
    col_offset: int = getattr(node, 'col_offset', 0)
    end_lineno: int | None = getattr(node, 'end_lineno', None)
    end_col_offset: int | None = getattr(node, 'end_col_offset', None)
    return Range.from_coords(
        lineno,
        col_offset,
        end_lineno if end_lineno is not None else lineno,
        end_col_offset if end_col_offset is not None else col_offset,
    )


def block_range(body: Sequence[ast.AST]) -> Range:
    """Return the range spanning a non-empty list of statements."""
    first, last = node_range(body[0]), node_range(body[-1])
    return Range(first.start, last.end)


def is_docstring(node: ast.stmt) -> bool:
    """Return True for a bare string literal statement."""
    return isinstance(node, ast.Expr) and isinstance(node.value, ast.Constant) and isinstance(node.value.value, str)


def is_future_import(node: ast.stmt) -> bool:
    """Return True for a ``from __future__ import ...`` statement."""
    return isinstance(node, ast.ImportFrom) and node.module == '__future__'


@dataclass(frozen=True, eq=False)
class InstrumentedFile:
    """Result of instrumenting one source file.

    Attributes:
        path: Canonical path of the instrumented file.
        tree: The instrumented module AST, with original line numbers.
        file_coverage: Descriptor of the file's coverable items, counters at
            their initial values.
    """

    path: str
    tree: ast.Module
    file_coverage: FileCoverage

    @property
    def text(self) -> str:
        """Instrumented source text."""
        return ast.unparse(self.tree)


class CoverageInstrumenter(ast.NodeTransformer):
    """AST transformer that inserts statement, function and branch counters.

    IDs are assigned in a pre-order walk of the tree, so the same source
    always produces the same IDs.
    """

    def __init__(
        self,
        file_path: str,
        coverage_variable: str,
        input_source_map: dict[str, Any] | None = None,
    ) -> None:
        self.coverage_variable = coverage_variable
        self.file_coverage = FileCoverage(path=file_path, input_source_map=input_source_map)

    def _counter_call(self, counter: str, *ids: int) -> ast.Call:
        """Build ``<coverage_variable>.<counter>(*ids)``."""
        return ast.Call(
            func=ast.Attribute(
                value=ast.Name(id=self.coverage_variable, ctx=ast.Load()),
                attr=counter,
                ctx=ast.Load(),
            ),
            args=[ast.Constant(value=i) for i in ids],
            keywords=[],
        )

    def _counter_statement(self, location: ast.AST, counter: str, *ids: int) -> ast.stmt:
        """Build a counter call statement positioned at ``location``."""
        return ast.copy_location(ast.Expr(value=self._counter_call(counter, *ids)), location)

    def _prefixed(self, call: ast.Call, expression: ast.expr) -> ast.expr:
        """Build ``(call, expression)[1]``, evaluating the counter first."""
        wrapped = ast.Subscript(
            value=ast.Tuple(elts=[call, expression], ctx=ast.Load()),
            slice=ast.Constant(value=1),
            ctx=ast.Load(),
        )
        return ast.copy_location(wrapped, expression)

    def _visit_list(self, nodes: list[Any]) -> list[Any]:
        """Visit a list of non-statement nodes, flattening list results."""
        result: list[Any] = []
        for node in nodes:
            if not isinstance(node, ast.AST):
                result.append(node)
                continue
            visited = self.visit(node)
            if visited is None:
                continue
            if isinstance(visited, list):
                result.extend(visited)
            else:
                result.append(visited)
        return result

    def _instrument_block(
        self,
        body: list[ast.stmt],
        *,
        docstring_allowed: bool = False,
        future_allowed: bool = False,
        preamble: Sequence[ast.stmt] = (),
    ) -> list[ast.stmt]:
        """Instrument a statement list.

        Args:
            body: The statements of one block.
            docstring_allowed: Keep a leading docstring first and uncounted.
            future_allowed: Keep leading ``__future__`` imports first. They
                cannot be preceded by a counter, so they are recorded as
                already executed once.
            preamble: Counter statements to place before the first counted
                statement.

        Returns:
            The instrumented statement list.
        """
        result: list[ast.stmt] = []
        index = 0
        if docstring_allowed and body and is_docstring(body[0]):
            result.append(body[0])
            index = 1
        if future_allowed:
            while index < len(body) and is_future_import(body[index]):
                self.file_coverage.add_statement(node_range(body[index]), hits=1)
                result.append(body[index])
                index += 1
        result.extend(preamble)

        for statement in body[index:]:
            statement_id = self.file_coverage.add_statement(node_range(statement))
            result.append(self._counter_statement(statement, STATEMENT_COUNTER, statement_id))
            visited = self.visit(statement)
            if isinstance(visited, list):
                result.extend(visited)
            elif visited is not None:
                result.append(visited)
        return result

    def generic_visit(self, node: ast.AST) -> ast.AST:
        """Visit children, instrumenting any nested statement lists."""
        for field_name, value in ast.iter_fields(node):
            if isinstance(value, list):
                if value and isinstance(value[0], ast.stmt):
                    setattr(node, field_name, self._instrument_block(value))
                else:
                    setattr(node, field_name, self._visit_list(value))
            elif isinstance(value, ast.AST):
                setattr(node, field_name, self.visit(value))
        return node

    def visit_Module(self, node: ast.Module) -> ast.Module:
        """Instrument the top-level statements."""
        node.body = self._instrument_block(node.body, docstring_allowed=True, future_allowed=True)
        return node

    def _visit_arguments(self, node: ast.arguments) -> ast.arguments:
        """Visit default values only; annotations are not executed code paths."""
        node.defaults = self._visit_list(node.defaults)
        node.kw_defaults = self._visit_list(node.kw_defaults)
        return node

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef, keyword: str) -> ast.stmt:
        node.decorator_list = self._visit_list(node.decorator_list)
        node.args = self._visit_arguments(node.args)
        header_end = node.col_offset + len(keyword) + len(node.name)
        function_id = self.file_coverage.add_function(
            FunctionMapping(
                name=node.name,
                decl=Range.from_coords(node.lineno, node.col_offset, node.lineno, header_end),
                loc=node_range(node),
                line=node.lineno,
            )
        )
        preamble = [self._counter_statement(node.body[0], FUNCTION_COUNTER, function_id)]
        node.body = self._instrument_block(node.body, docstring_allowed=True, preamble=preamble)
        return node

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.stmt:
        """Count calls of a function."""
        return self._visit_function(node, 'def ')

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.stmt:
        """Count calls of a coroutine function."""
        return self._visit_function(node, 'async def ')

    def visit_Lambda(self, node: ast.Lambda) -> ast.expr:
        """Count calls of a lambda."""
        node.args = self._visit_arguments(node.args)
        function_id = self.file_coverage.add_function(
            FunctionMapping(
                name=f'(anonymous_{len(self.file_coverage.fn_map)})',
                decl=Range.from_coords(node.lineno, node.col_offset, node.lineno, node.col_offset + len('lambda')),
                loc=node_range(node),
                line=node.lineno,
            )
        )
        node.body = self._prefixed(self._counter_call(FUNCTION_COUNTER, function_id), self.visit(node.body))
        return node

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.stmt:
        """Instrument a class body, keeping its docstring first."""
        node.decorator_list = self._visit_list(node.decorator_list)
        node.bases = self._visit_list(node.bases)
        node.keywords = self._visit_list(node.keywords)
        node.body = self._instrument_block(node.body, docstring_allowed=True)
        return node

    def visit_AnnAssign(self, node: ast.AnnAssign) -> ast.stmt:
        """Visit the assigned value but not the annotation."""
        if node.value is not None:
            node.value = self.visit(node.value)
        return node

    def visit_If(self, node: ast.If) -> ast.stmt:
        """Count both paths of an if statement, adding an else block if needed."""
        alternate = block_range(node.orelse) if node.orelse else node_range(node)
        branch_id = self.file_coverage.add_branch(
            BranchMapping(
                type='if',
                loc=node_range(node),
                locations=(block_range(node.body), alternate),
                line=node.lineno,
            )
        )
        node.test = self.visit(node.test)
        node.body = self._instrument_block(
            node.body,
            preamble=[self._counter_statement(node.body[0], BRANCH_COUNTER, branch_id, 0)],
        )
        else_anchor = node.orelse[0] if node.orelse else node
        node.orelse = self._instrument_block(
            node.orelse,
            preamble=[self._counter_statement(else_anchor, BRANCH_COUNTER, branch_id, 1)],
        )
        return node

    def visit_Match(self, node: ast.Match) -> ast.stmt:
        """Count each case of a match statement as one branch path."""
        locations = tuple(Range(node_range(case.pattern).start, block_range(case.body).end) for case in node.cases)
        branch_id = self.file_coverage.add_branch(
            BranchMapping(type='switch', loc=node_range(node), locations=locations, line=node.lineno)
        )
        node.subject = self.visit(node.subject)
        for index, case in enumerate(node.cases):
            if case.guard is not None:
                case.guard = self.visit(case.guard)
            case.body = self._instrument_block(
                case.body,
                preamble=[self._counter_statement(case.body[0], BRANCH_COUNTER, branch_id, index)],
            )
        return node

    def visit_IfExp(self, node: ast.IfExp) -> ast.expr:
        """Count both paths of a conditional expression."""
        branch_id = self.file_coverage.add_branch(
            BranchMapping(
                type='cond-expr',
                loc=node_range(node),
                locations=(node_range(node.body), node_range(node.orelse)),
                line=node.lineno,
            )
        )
        node.test = self.visit(node.test)
        node.body = self._prefixed(self._counter_call(BRANCH_COUNTER, branch_id, 0), self.visit(node.body))
        node.orelse = self._prefixed(self._counter_call(BRANCH_COUNTER, branch_id, 1), self.visit(node.orelse))
        return node

    def visit_BoolOp(self, node: ast.BoolOp) -> ast.expr:
        """Count each evaluated operand of ``and``/``or``, preserving short-circuiting."""
        branch_id = self.file_coverage.add_branch(
            BranchMapping(
                type='binary-expr',
                loc=node_range(node),
                locations=tuple(node_range(value) for value in node.values),
                line=node.lineno,
            )
        )
        node.values = [
            self._prefixed(self._counter_call(BRANCH_COUNTER, branch_id, index), self.visit(value))
            for index, value in enumerate(node.values)
        ]
        return node


def instrument_source(
    source: str,
    file_path: str,
    coverage_variable: str,
    input_source_map: dict[str, Any] | None = None,
) -> InstrumentedFile:
    """Instrument Python source code with coverage counters.

    This is the main entry point of the instrumentation engine. It parses
    the source, inserts counters and returns the instrumented tree together
    with the file's coverage descriptor.

    Args:
        source: The Python source code to instrument.
        file_path: Path recorded in the descriptor.
        coverage_variable: Global name the counters are called on.
        input_source_map: Source map to attach to the descriptor.

    Returns:
        The instrumented file.

    Raises:
        SyntaxError: If the source cannot be parsed.
    """
    tree = ast.parse(source, filename=file_path)
    instrumenter = CoverageInstrumenter(file_path, coverage_variable, input_source_map)
    new_tree = instrumenter.visit(tree)
    if not isinstance(new_tree, ast.Module):
        raise TypeError(f'Expected ast.Module, got {type(new_tree).__name__}')
    ast.fix_missing_locations(new_tree)
    return InstrumentedFile(path=file_path, tree=new_tree, file_coverage=instrumenter.file_coverage)
