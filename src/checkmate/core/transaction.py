"""
Transactions: batched, atomic mutation of a document.

Every change to a document's todo model funnels through :func:`run`. The
body queues *operations* (functions returning hunks) and *callbacks*
(functions run after operations land). Execution proceeds in rounds:

1. Drain the operation queue in FIFO order. An operation may queue more
   operations; they join the same round. All hunks from the round are
   computed against the same snapshot and applied with one
   :func:`~checkmate.core.diff.apply_diff` call, after which the todo map
   is rebuilt.
2. Run callbacks. A callback queued while an operation or callback is
   running runs before callbacks that were already waiting. Operations
   queued by a callback start a new round before the next callback runs.

The loop ends when both queues are empty. Every round of one transaction
belongs to the same undo step.

Failures are contained: an exception in an operation or callback is
logged and recorded on the result, hunks already computed are kept, and the
queues keep draining.

Example:
    >>> def check(ctx, item_id):
    ...     return [make_marker_replace(ctx.get_item(item_id), "✔")]
    >>> result = run(doc, lambda ctx: ctx.add_op(check, 1))
    >>> result.ok
    True
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from checkmate.core.diff import Hunk, apply_diff, apply_to_lines
from checkmate.core.document import Document
from checkmate.core.exceptions import NestedTransactionError
from checkmate.core.parser import TodoItem, TodoMap

logger = logging.getLogger(__name__)

Operation = Callable[..., "Iterable[Hunk] | None"]
Callback = Callable[..., Any]

# document identity -> active context
_active: dict[int, "TransactionContext"] = {}


@dataclass
class OperationFailure:
    """An operation or callback that raised inside a transaction."""

    name: str
    kind: str
    """``"op"``, ``"callback"`` or ``"post"``."""

    error: Exception


@dataclass
class TransactionResult:
    """Outcome of a transaction."""

    hunks_applied: int = 0
    batches: int = 0
    errors: list[OperationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


class TransactionContext:
    """
    Handle given to the transaction body, operations and callbacks.

    ``todo_map`` always reflects the document after the most recent round,
    never a half-applied batch.
    """

    def __init__(self, document: Document) -> None:
        self.document = document
        self.config = document.config
        self._ops: deque[tuple[Operation, tuple[Any, ...]]] = deque()
        self._op_keys: set[tuple[Any, str]] = set()
        self._callbacks: deque[tuple[Callback, tuple[Any, ...]]] = deque()
        self._new_callbacks: list[tuple[Callback, tuple[Any, ...]]] = []
        self._collecting = False
        self.result = TransactionResult()

    # ------------------------------------------------------------------
    # Model access
    # ------------------------------------------------------------------

    @property
    def todo_map(self) -> TodoMap:
        return self.document.todo_map

    @property
    def errors(self) -> list[OperationFailure]:
        return self.result.errors

    def get_item(self, item_id: int) -> TodoItem | None:
        return self.document.todo_map.get(item_id)

    def get_item_by_row(self, row: int) -> TodoItem | None:
        """The item whose first line is ``row``."""
        return self.document.todo_map.get_by_row(row)

    # ------------------------------------------------------------------
    # Queueing
    # ------------------------------------------------------------------

    def add_op(self, fn: Operation, *args: Any) -> None:
        """
        Queue an operation.

        ``fn(ctx, *args)`` returns the hunks it wants applied. An operation
        already pending with equal arguments is not queued twice.
        """
        key = (fn, repr(args))
        if key in self._op_keys:
            logger.debug(f"Skipping duplicate operation {_callable_name(fn)}")
            return
        self._op_keys.add(key)
        self._ops.append((fn, args))

    def add_cb(self, fn: Callback, *args: Any) -> None:
        """Queue ``fn(ctx, *args)`` to run once the pending operations have landed."""
        if self._collecting:
            self._new_callbacks.append((fn, args))
        else:
            self._callbacks.append((fn, args))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def record_failure(self, name: str, kind: str, error: Exception) -> None:
        logger.error(f"Transaction {kind} {name} failed: {error}", exc_info=error)
        self.result.errors.append(OperationFailure(name=name, kind=kind, error=error))

    def _promote_new_callbacks(self) -> None:
        # callbacks queued during the last unit of work run first
        self._callbacks.extendleft(reversed(self._new_callbacks))
        self._new_callbacks = []

    def _run_ops(self) -> None:
        hunks: list[Hunk] = []
        snapshot = list(self.document.lines)
        self._collecting = True
        try:
            while self._ops:
                fn, args = self._ops.popleft()
                try:
                    produced = fn(self, *args)
                    if produced:
                        # a hunk that does not fit fails its own op only
                        apply_to_lines(snapshot, produced)
                        hunks.extend(produced)
                except Exception as e:
                    self.record_failure(_callable_name(fn), "op", e)
        finally:
            self._collecting = False
            self._op_keys.clear()

        if hunks:
            try:
                applied = apply_diff(self.document, hunks)
            except Exception as e:
                self.record_failure("apply_diff", "op", e)
            else:
                self.result.hunks_applied += applied
                self.result.batches += 1
        self._promote_new_callbacks()

    def _run_next_callback(self) -> None:
        fn, args = self._callbacks.popleft()
        self._collecting = True
        try:
            fn(self, *args)
        except Exception as e:
            self.record_failure(_callable_name(fn), "callback", e)
        finally:
            self._collecting = False
        self._promote_new_callbacks()

    def drain(self) -> None:
        """Run rounds until no operations or callbacks remain."""
        while self._ops or self._callbacks:
            if self._ops:
                self._run_ops()
            else:
                self._run_next_callback()


def current_context(document: Document) -> TransactionContext | None:
    """The active transaction context of ``document``, if any."""
    return _active.get(id(document))


def is_active(document: Document | None = None) -> bool:
    """Whether a transaction is running (on ``document``, or on any document)."""
    if document is None:
        return bool(_active)
    return id(document) in _active


def run(
    document: Document,
    body: Callable[[TransactionContext], Any],
    post_fn: Callable[[], Any] | None = None,
) -> TransactionResult:
    """
    Run a transaction against ``document``.

    Args:
        document: Document to mutate
        body: Called with the context to queue operations and callbacks
        post_fn: Called after the queues have drained

    Returns:
        TransactionResult with the number of hunks applied and any contained
        failures

    Raises:
        NestedTransactionError: If a transaction is already active on
            ``document``
    """
    key = id(document)
    if key in _active:
        raise NestedTransactionError(
            f"Nested transactions are not supported for document {document.name}"
        )

    ctx = TransactionContext(document)
    _active[key] = ctx
    try:
        with document.undo_group():
            body(ctx)
            ctx.drain()
    finally:
        del _active[key]

    if post_fn is not None:
        try:
            post_fn()
        except Exception as e:
            ctx.record_failure(_callable_name(post_fn), "post", e)

    if ctx.result.errors:
        logger.warning(
            f"Transaction on {document.name} finished with {len(ctx.result.errors)} error(s)"
        )
    return ctx.result
