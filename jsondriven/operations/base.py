import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from jsondriven import config
from jsondriven.core.cancellation import CancellationToken
from jsondriven.core.execution import ExecutionMode, Invocation, invoke, invoke_sync
from jsondriven.core.metrics import metrics_collector, track_execution
from jsondriven.exceptions import AssertionMismatch, InvalidOperationState, InvalidTestShape
from jsondriven.models.document import OperationDocument, ensure_fields_valid
from jsondriven.models.options import OperationOptions
from jsondriven.operations.arguments import ArgumentBinder, ArgumentHandler, OptionsArgument, SessionArgument
from jsondriven.operations.aspects import AspectTable, values_equal

logger = logging.getLogger(__name__)


class OperationPhase(Enum):
    NEW = "new"
    ARRANGED = "arranged"
    ACTED = "acted"


class CollectionOperation:
    """
    Runs one test document against a collection: arrange, act, assert.

    An instance is built per test document by the operation registry, bound
    once during ``arrange``, read-only afterwards, and discarded when the
    document completes.

    Concrete operations declare:
    - ``method``: the collaborator method to call
    - ``options_model``: the options bag they accept, if any
    - ``argument_handlers()``: their own argument names
    - ``invocation()``: the call built from bound state
    - ``result_aspects()``: the named result aspects they check
    """

    name: str = ""
    method: str = ""
    options_model: Optional[Type[OperationOptions]] = None
    extra_fields: Tuple[str, ...] = ()

    def __init__(self, context):
        self.context = context
        self.phase = OperationPhase.NEW
        self.mode: Optional[ExecutionMode] = None
        self.outcome: Any = None
        self.expected_result: Any = None
        self.has_expected_result = False

        self.session_argument = SessionArgument(context)
        capabilities = [self.session_argument]
        self.options_argument: Optional[OptionsArgument] = None
        if self.options_model is not None:
            self.options_argument = OptionsArgument(self.options_model)
            capabilities.append(self.options_argument)

        self.binder = ArgumentBinder(self.name, self.argument_handlers(), capabilities)
        self.aspects: Optional[AspectTable] = self.result_aspects()

    # Per-operation hooks

    def argument_handlers(self) -> Dict[str, ArgumentHandler]:
        return {}

    def invocation(self) -> Invocation:
        raise NotImplementedError

    def result_aspects(self) -> Optional[AspectTable]:
        """Operations with a scalar result return None and override ``check_result``."""
        return None

    def check_result(self, expected: Any):
        if not values_equal(expected, self.outcome):
            raise AssertionMismatch("result", expected, self.outcome)

    # Bound state

    @property
    def options(self) -> Optional[OperationOptions]:
        return self.options_argument.options if self.options_argument else None

    @property
    def option_kwargs(self) -> Dict[str, Any]:
        return self.options.as_kwargs() if self.options is not None else {}

    @property
    def session(self) -> Any:
        return self.session_argument.session

    @property
    def allowed_fields(self) -> Tuple[str, ...]:
        return config.BASE_DOCUMENT_FIELDS + tuple(self.extra_fields)

    # Three-phase contract

    def arrange(self, document: Mapping[str, Any]):
        """
        Validates the document's top-level fields, then binds its arguments.

        Raises:
            InvalidTestShape: On a field outside the allow-list, before any binding
            UnrecognizedArgument: On an argument no handler recognizes
        """
        if self.phase is not OperationPhase.NEW:
            raise InvalidOperationState(f"{self.name} has already been arranged.")
        if not isinstance(document, Mapping):
            raise InvalidTestShape(f"Test document must be a document, got {type(document).__name__}.")

        ensure_fields_valid(document, self.allowed_fields)
        parsed = OperationDocument.parse(document)
        if parsed.name != self.name:
            raise InvalidTestShape(
                f"Test document names '{parsed.name}' but was given to {self.name}.", field="name"
            )

        self.binder.bind_all(parsed.arguments)
        self.has_expected_result = parsed.has_result
        self.expected_result = parsed.result
        self.phase = OperationPhase.ARRANGED
        logger.debug(f"Arranged {self.name}", extra={'arguments': list(parsed.arguments)})

    def _begin_act(self, mode, session: Any):
        if self.phase is not OperationPhase.ARRANGED:
            raise InvalidOperationState(f"{self.name} must be arranged exactly once before it acts.")
        self.mode = ExecutionMode.parse(mode)
        self.phase = OperationPhase.ACTED
        return session if session is not None else self.session

    @track_execution
    async def act(
        self,
        mode: ExecutionMode,
        session: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Runs exactly one call shape and stores its outcome.

        An explicit ``session`` wins over a session bound from the document's
        arguments. ASYNC mode awaits the async collection. SYNC mode runs the
        sync collection in the loop's default executor, so a blocking
        collaborator never stalls other tasks on the loop.
        """
        effective_session = self._begin_act(mode, session)
        self.outcome = await invoke(
            self.invocation(), self.mode, self.context.targets, effective_session, cancellation
        )
        return self.outcome

    @track_execution
    def act_sync(self, session: Any = None, cancellation: Optional[CancellationToken] = None) -> Any:
        """The SYNC call shape for callers without an event loop. Same contract as ``act``."""
        effective_session = self._begin_act(ExecutionMode.SYNC, session)
        self.outcome = invoke_sync(self.invocation(), self.context.targets, effective_session, cancellation)
        return self.outcome

    def assert_result(self):
        if self.phase is not OperationPhase.ACTED:
            raise InvalidOperationState(f"{self.name} has no outcome to assert.")
        if not self.has_expected_result:
            return

        try:
            if self.aspects is not None:
                self.aspects.check(self.expected_result, self.outcome)
            else:
                self.check_result(self.expected_result)
        except AssertionMismatch:
            metrics_collector.record_assertion(self.name, passed=False)
            raise
        metrics_collector.record_assertion(self.name, passed=True)

    async def execute(
        self,
        document: Mapping[str, Any],
        mode: ExecutionMode,
        session: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """Arrange, act and assert in one go. Returns the outcome."""
        self.arrange(document)
        await self.act(mode, session=session, cancellation=cancellation)
        self.assert_result()
        return self.outcome

    def execute_sync(
        self,
        document: Mapping[str, Any],
        session: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        self.arrange(document)
        self.act_sync(session=session, cancellation=cancellation)
        self.assert_result()
        return self.outcome
