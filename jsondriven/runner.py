import logging
from typing import Any, Iterable, Mapping, Optional, Union

from jsondriven import config
from jsondriven.core.cancellation import CancellationToken
from jsondriven.core.execution import ExecutionMode
from jsondriven.exceptions import (
    AssertionMismatch,
    AuthoringError,
    InvalidOperationState,
    OperationCancelled,
)
from jsondriven.models.results import ValidationResult
from jsondriven.operations import OperationContext, OperationRegistry, default_registry

logger = logging.getLogger(__name__)


class DocumentRunner:
    """Runs already-parsed test documents and reports one result per document."""

    def __init__(self, context: OperationContext, registry: Optional[OperationRegistry] = None):
        self.context = context
        self.registry = registry or default_registry
        self.results: list[ValidationResult] = []

    async def run_all(
        self,
        documents: Iterable[Mapping[str, Any]],
        mode: Union[ExecutionMode, str, None] = None,
    ) -> tuple[int, int, list[ValidationResult]]:
        """
        Execute every document in order.

        Returns:
            (passed_count, failed_count, all_results)
        """
        mode = ExecutionMode.parse(mode or config.DEFAULT_EXECUTION_MODE)
        passed_count = 0
        failed_count = 0

        logger.info("=" * 70)
        logger.info(f"RUNNING TEST DOCUMENTS ({mode.value})")
        logger.info("=" * 70)

        for index, document in enumerate(documents):
            result = await self.run_document(document, mode, test_id=f"{_document_name(document)}#{index}")
            self.results.append(result)

            if result.passed:
                passed_count += 1
                self._print_pass(result)
            else:
                failed_count += 1
                self._print_fail(result)

        return passed_count, failed_count, self.results

    async def run_document(
        self,
        document: Mapping[str, Any],
        mode: Union[ExecutionMode, str],
        session: Any = None,
        cancellation: Optional[CancellationToken] = None,
        test_id: Optional[str] = None,
    ) -> ValidationResult:
        """Execute and validate a single document on a freshly built operation."""
        mode = ExecutionMode.parse(mode)
        name = _document_name(document)
        test_id = test_id or name
        errors = []

        try:
            operation = self.registry.create_for(document, self.context)
            await operation.execute(document, mode, session=session, cancellation=cancellation)
        except AssertionMismatch as e:
            errors.append(f"Assertion mismatch: {e}")
        except AuthoringError as e:
            errors.append(f"Invalid test document: {e}")
        except OperationCancelled as e:
            errors.append(f"Cancelled: {e}")
        except InvalidOperationState as e:
            errors.append(f"Invalid operation state: {e}")
        except Exception as e:
            logger.error(f"Error executing test document {test_id}: {str(e)}")
            errors.append(f"Execution error: {str(e)}")

        return ValidationResult(
            test_id=test_id,
            operation=name,
            mode=mode.value,
            passed=not errors,
            errors=errors,
        )

    def _print_pass(self, result: ValidationResult):
        logger.info(f"✓ PASS [{result.mode}] {result.test_id}")

    def _print_fail(self, result: ValidationResult):
        logger.error(f"✗ FAIL [{result.mode}] {result.test_id}")
        for error in result.errors:
            logger.error(f"  • {error}")


def _document_name(document: Any) -> str:
    if isinstance(document, Mapping):
        return str(document.get("name", "<unnamed>"))
    return "<invalid>"
