import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from .errors import TransactionError

logger = logging.getLogger("ormweave")


class TransactionManager:
    """Tracks transaction nesting for one connection.

    The outermost level issues `begin`/`commit`/`rollback`; nested levels
    use savepoints named `savepoint_<level>`.
    """

    def __init__(self, connection: Any):
        """
        Initialize the transaction manager.

        Args:
            connection: The ormweave Connection whose statements are wrapped
        """
        self._connection = connection
        self._level = 0

    # transaction level

    @property
    def level(self) -> int:
        """Current transaction nesting level (0 when outside any transaction)."""
        return self._level

    def _savepoint_name(self, level: int) -> str:
        return f"savepoint_{level}"

    # explicit control

    def begin(self) -> int:
        """Open a transaction, or a savepoint when one is already open. Return the new level."""
        self._level += 1
        if self._level == 1:
            logger.debug("BEGIN")
            self._connection.execute_raw("begin").close()
        else:
            name = self._savepoint_name(self._level)
            logger.debug("SAVEPOINT %s", name)
            self._connection.execute_raw(f"savepoint {name}").close()
        return self._level

    def commit(self) -> None:
        """Commit the innermost level: release its savepoint, or commit the transaction."""
        if self._level == 0:
            raise TransactionError("Cannot commit: no transaction is open.")
        if self._level > 1:
            name = self._savepoint_name(self._level)
            logger.debug("RELEASE SAVEPOINT %s", name)
            self._connection.execute_raw(f"release savepoint {name}").close()
        else:
            logger.debug("COMMIT")
            self._connection.execute_raw("commit").close()
        self._level -= 1

    def roll_back(self) -> None:
        """Roll back the innermost level."""
        if self._level == 0:
            raise TransactionError("Cannot roll back: no transaction is open.")
        if self._level > 1:
            name = self._savepoint_name(self._level)
            logger.debug("ROLLBACK TO SAVEPOINT %s", name)
            self._connection.execute_raw(f"rollback to savepoint {name}").close()
        else:
            logger.debug("ROLLBACK")
            self._connection.execute_raw("rollback").close()
        self._level -= 1

    # actual transaction itself

    @contextmanager
    def transaction(self) -> Iterator["Transaction"]:
        """
        Context manager for database transactions with SAVEPOINT support.

        Yields:
            Transaction: Transaction object for executing statements
        """
        level = self.begin()
        transaction = Transaction(self._connection, self, level)
        try:
            yield transaction
        except BaseException:
            self.roll_back()
            raise
        else:
            self.commit()
        finally:
            transaction._active = False


class Transaction:

    def __init__(self, connection: Any, manager: TransactionManager, level: int):
        self._connection = connection
        self._manager = manager
        self._level = level
        self._active = True

    @property
    def level(self) -> int:
        return self._level

    def execute(self, sql: str, parameters: Sequence[Any] = ()) -> int:
        """
        Execute a statement within this transaction.

        Raises:
            TransactionError: If the transaction is over, or a nested one is open
        """
        if not self._active:
            raise TransactionError("Transaction is no longer active")
        current_level = self._manager.level
        if current_level > self._level:
            raise TransactionError(
                f"Cannot use transaction level {self._level} from level {current_level}. "
                "Higher-level transactions cannot be accessed from nested transactions."
            )
        return self._connection.execute(sql, parameters)
