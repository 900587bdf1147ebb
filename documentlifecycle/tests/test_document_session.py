from __future__ import annotations

import asyncio
import unittest

import httpx

from core.logging.logic.logger import logger
from core.models.user import SessionUser
from core.storage.kv_store import InMemoryKeyValueStore
from documentlifecycle.exceptions.errors import ForbiddenError, SessionExpiredError
from documentlifecycle.logic.policy.workflow_policy import WorkflowPolicy
from documentlifecycle.logic.services.document_session import DocumentSession
from documentlifecycle.logic.services.workflow_service import WorkflowService
from documentlifecycle.models.document_status import DocumentStatus
from documentlifecycle.models.mappers import document_from_wire
from fields.logic.placement_session import draft_key

from documentlifecycle.tests.api_fixtures import FakeDocumentServer, document, task

CREATOR = "creator@example.com"


class _GatedWorkflow:
    """Serves parsed documents; a refresh waits while its id has a closed gate."""

    def __init__(self, *docs) -> None:
        self.policy = WorkflowPolicy()
        self.docs = {d["id"]: document_from_wire(d) for d in docs}
        self.gates: dict = {}
        self.viewed: list = []

    async def refresh(self, document_id):
        gate = self.gates.get(document_id)
        if gate is not None:
            await gate.wait()
        return self.docs[document_id]

    async def mark_viewed(self, document_id) -> None:
        self.viewed.append(document_id)


class TestStaleResults(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:", level="DEBUG")
        self.addCleanup(logger.configure, level="INFO")
        logger.clear_logs()

    async def test_late_result_of_previous_document_is_discarded(self) -> None:
        wf = _GatedWorkflow(document(doc_id=1, tasks=[task("CREATOR", CREATOR)]),
                            document(doc_id=2, tasks=[task("CREATOR", CREATOR)]))
        wf.gates[1] = asyncio.Event()
        session = DocumentSession(wf, SessionUser(CREATOR), InMemoryKeyValueStore())

        first = asyncio.create_task(session.load(1))
        await asyncio.sleep(0)
        self.assertIsNotNone(await session.switch_document(2))
        wf.gates[1].set()

        self.assertIsNone(await first)
        self.assertEqual(session.document.id, 2)
        self.assertEqual(session.placements.document_id, 2)
        self.assertEqual(wf.viewed, [2])
        self.assertTrue(logger.query_logs(feature="DocumentSession", event="StaleResultDiscarded"))

    async def test_switching_resets_state_before_the_load(self) -> None:
        wf = _GatedWorkflow(document(doc_id=1), document(doc_id=2))
        session = DocumentSession(wf, SessionUser(CREATOR), InMemoryKeyValueStore())
        await session.load(1)
        wf.gates[2] = asyncio.Event()
        pending = asyncio.create_task(session.load(2))
        await asyncio.sleep(0)
        self.assertIsNone(session.document)
        self.assertIsNone(session.placements)
        wf.gates[2].set()
        await pending
        self.assertEqual(session.document.id, 2)


class TestErrorSurfacing(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        logger.clear_logs()

    async def _session(self, server: FakeDocumentServer, **kw) -> DocumentSession:
        api = server.client(CREATOR)
        self.addAsyncCleanup(api.aclose)
        return DocumentSession(WorkflowService(api), SessionUser(CREATOR), InMemoryKeyValueStore(), **kw)

    async def test_missing_document_hides_every_action(self) -> None:
        session = await self._session(FakeDocumentServer())
        self.assertIsNone(await session.load(99))
        self.assertTrue(session.ui_state.document_missing)
        self.assertFalse(session.ui_state.show_reject)
        self.assertIsNone(session.document)

    async def test_forbidden_sets_error_and_raises(self) -> None:
        server = FakeDocumentServer(document())
        server.fail_with["GET"] = httpx.Response(403, json={"message": "Not your document"})
        session = await self._session(server)
        with self.assertRaises(ForbiddenError):
            await session.load(7)
        self.assertEqual(session.ui_state.error_message, ForbiddenError().user_message)

    async def test_expired_session_calls_back(self) -> None:
        expired = []
        server = FakeDocumentServer(document())
        server.fail_with["GET"] = httpx.Response(401)
        session = await self._session(server, on_session_expired=lambda: expired.append(True))
        with self.assertRaises(SessionExpiredError):
            await session.load(7)
        self.assertEqual(expired, [True])

    async def test_failed_mark_viewed_does_not_fail_the_load(self) -> None:
        server = FakeDocumentServer(document())
        server.fail_with["POST mark-viewed"] = httpx.Response(503)
        session = await self._session(server)
        self.assertIsNotNone(await session.load(7))
        self.assertTrue(logger.query_logs(feature="DocumentSession", event="MarkViewedFailed"))


class TestCompletePlacement(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        logger.clear_logs()

    async def test_buffer_is_submitted_and_cleared(self) -> None:
        server = FakeDocumentServer(document(status="EDITING", tasks=[task("CREATOR", CREATOR)]))
        api = server.client(CREATOR)
        self.addAsyncCleanup(api.aclose)
        store = InMemoryKeyValueStore()
        session = DocumentSession(WorkflowService(api), SessionUser(CREATOR), store)
        await session.load(7)
        self.assertFalse(await session.complete_placement())

        placed = session.placements.place("a@example.com", "Ann")
        self.assertIsNotNone(store.get(draft_key(7)))
        self.assertTrue(await session.complete_placement())

        self.assertIs(session.document.status, DocumentStatus.READY_FOR_REVIEW)
        self.assertEqual(session.placements.placements, [])
        self.assertTrue(session.placements.is_persisted(placed.id))
        self.assertIsNone(store.get(draft_key(7)))
        self.assertTrue(session.ui_state.show_assign_reviewer)


if __name__ == "__main__":
    unittest.main()
