"""
Command/query messaging.

`Dispatcher` is the server side: it owns the session factory, opens one
session per message, and routes each command or query class to exactly one
handler. Anything raised by a handler leaves the dispatcher as a
`ServerError` carrying a fresh correlation id.

`MessagingClient` is the caller side. It is the single place where dispatch
failures are logged.
"""
from __future__ import annotations

import inspect
import logging
import uuid
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy.orm import Session

from ess.db import schemas
from ess.db.repositories import evacuations as evacuation_repo
from ess.db.repositories import supports as support_repo
from ess.errors import NotFoundError, NotSupportedError, ServerError
from ess.utils.concurrency import run_blocking

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes command and query messages to repository handlers.

    Command handlers are blocking and run on the loop's executor, each with
    its own session; query handlers are coroutines that offload their own
    store work.
    """

    def __init__(self, session_factory: Callable[[], Session], *, read_concurrency: Optional[int] = None):
        self._session_factory = session_factory
        self._read_concurrency = read_concurrency
        self._handlers: Dict[Type[Any], Callable[[Any], Any]] = {
            schemas.SubmitEvacuationFileCommand: self._submit_evacuation_file,
            schemas.DeleteEvacuationFileCommand: self._delete_evacuation_file,
            schemas.SaveEvacuationFileNoteCommand: self._save_note,
            schemas.SaveEvacuationFileSupportCommand: self._manage_support,
            schemas.ChangeSupportStatusCommand: self._manage_support,
            schemas.SubmitSupportForApprovalCommand: self._manage_support,
            schemas.EvacuationFilesQuery: self._read_evacuation_files,
            schemas.SearchSupportsQuery: self._search_supports,
        }

    async def dispatch(self, message: Any) -> Any:
        handler = self._handlers.get(type(message))
        try:
            if handler is None:
                raise NotSupportedError(f"{type(message).__name__} is not supported")
            if inspect.iscoroutinefunction(handler):
                return await handler(message)
            return await run_blocking(handler, message)
        except ServerError:
            raise
        except Exception as e:
            raise ServerError(type(e).__name__, str(e), correlation_id=uuid.uuid4()) from e

    def _submit_evacuation_file(self, cmd: schemas.SubmitEvacuationFileCommand) -> str:
        with self._session_factory() as db:
            if cmd.file.id is None:
                return evacuation_repo.create_evacuation_file(db, cmd.file)
            return evacuation_repo.update_evacuation_file(db, cmd.file)

    def _delete_evacuation_file(self, cmd: schemas.DeleteEvacuationFileCommand) -> str:
        with self._session_factory() as db:
            return evacuation_repo.delete_evacuation_file(db, cmd.file_id)

    def _save_note(self, cmd: schemas.SaveEvacuationFileNoteCommand) -> str:
        with self._session_factory() as db:
            if cmd.note.id is None:
                return evacuation_repo.create_note(db, cmd.file_id, cmd.note)
            return evacuation_repo.update_note(db, cmd.file_id, cmd.note)

    def _manage_support(self, cmd: Any) -> Any:
        with self._session_factory() as db:
            return support_repo.manage(db, cmd)

    async def _read_evacuation_files(self, query: schemas.EvacuationFilesQuery) -> schemas.EvacuationFilesQueryResult:
        items = await evacuation_repo.read_evacuation_files(
            self._session_factory, query, max_concurrency=self._read_concurrency
        )
        return schemas.EvacuationFilesQueryResult(items=items)

    async def _search_supports(self, query: schemas.SearchSupportsQuery) -> schemas.SearchSupportsQueryResult:
        return await support_repo.query(self._session_factory, query, max_concurrency=self._read_concurrency)


class MessagingClient:
    """Sends commands and queries through a dispatcher."""

    def __init__(self, dispatcher: Dispatcher):
        self._dispatcher = dispatcher

    async def send(self, command: Any) -> Any:
        try:
            return await self._dispatcher.dispatch(command)
        except ServerError as e:
            logger.error(
                "Server error when sending command %s, correlation id %s: %s",
                type(command).__name__,
                e.correlation_id,
                e.message,
                exc_info=e,
            )
            raise

    async def query(self, query: Any) -> Any:
        """Run a query; a not-found server error yields None."""
        try:
            return await self._dispatcher.dispatch(query)
        except ServerError as e:
            if e.error_type == NotFoundError.__name__:
                return None
            logger.error(
                "Server error when sending query %s, correlation id %s: %s",
                type(query).__name__,
                e.correlation_id,
                e.message,
                exc_info=e,
            )
            raise
