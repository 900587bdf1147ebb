from __future__ import annotations

import unittest

from core.helpers.date_time_helper import format_short, parse_iso
from core.logging.logic.logger import logger
from documentlifecycle.logic.services.ui_state_service import UIStateService, assignment_hint
from documentlifecycle.models.document_status import REJECTED_PREFIX
from documentlifecycle.models.mappers import document_from_wire
from documentlifecycle.tests.api_fixtures import document, signer_slot, task

CREATOR = "creator@example.com"
EDITOR = "editor@example.com"
REVIEWER = "reviewer@example.com"
SIGNER_A = "a@example.com"
SIGNER_B = "b@example.com"
ASSIGNED_AT = format_short(parse_iso("2024-03-14T09:05:00Z"))


def _doc(status: str, **kw):
    return document_from_wire(document(status=status, **kw))


def _visible(state) -> set:
    return {name for name in ("assign_reviewer", "place_signatures", "approve", "sign", "reject", "export")
            if getattr(state, f"show_{name}")}


class TestVisibility(unittest.TestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        self.svc = UIStateService()

    def test_creator_while_ready_for_review(self) -> None:
        doc = _doc("READY_FOR_REVIEW", tasks=[task("CREATOR", CREATOR)])
        self.assertEqual(_visible(self.svc.compute(doc=doc, email=CREATOR)), {"assign_reviewer", "place_signatures"})
        self.assertEqual(_visible(self.svc.compute(doc=doc, email="stranger@example.com")), set())

    def test_reviewer_while_reviewing(self) -> None:
        doc = _doc("REVIEWING", tasks=[task("CREATOR", CREATOR), task("REVIEWER", REVIEWER)])
        self.assertEqual(_visible(self.svc.compute(doc=doc, email=REVIEWER)), {"approve", "reject"})
        # a reviewer is already assigned and placement is over
        self.assertEqual(_visible(self.svc.compute(doc=doc, email=CREATOR)), set())

    def test_signers_while_signing(self) -> None:
        doc = _doc("SIGNING", tasks=[task("SIGNER", SIGNER_A), task("SIGNER", SIGNER_B)], fields=[
            signer_slot("sa", SIGNER_A, value="data:image/png;base64,AAAA"),
            signer_slot("sb", SIGNER_B),
        ])
        signed = self.svc.compute(doc=doc, email=SIGNER_A)
        self.assertFalse(signed.show_sign)
        self.assertFalse(signed.show_reject)
        self.assertEqual(_visible(self.svc.compute(doc=doc, email=SIGNER_B)), {"sign", "reject"})
        self.assertEqual(signed.progress_text, "1/2 signed")

    def test_export_only_when_completed(self) -> None:
        done = _doc("COMPLETED", tasks=[task("SIGNER", SIGNER_A)])
        state = self.svc.compute(doc=done, email=SIGNER_A)
        self.assertEqual(_visible(state), {"export"})
        self.assertEqual(state.progress_text, "")

    def test_no_document_gives_empty_state(self) -> None:
        state = self.svc.compute(doc=None, email=CREATOR)
        self.assertEqual(_visible(state), set())
        self.assertFalse(state.document_missing)

    def test_missing_hides_everything(self) -> None:
        state = UIStateService.missing()
        self.assertTrue(state.document_missing)
        self.assertEqual(_visible(state), set())
        self.assertTrue(state.error_message)


class TestStatusAndHints(unittest.TestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        self.svc = UIStateService()

    def test_rejected_prefix_on_later_status(self) -> None:
        doc = _doc("EDITING", tasks=[task("EDITOR", EDITOR)],
                   statusLogs=[{"status": "REJECTED", "comment": "typo"}])
        state = self.svc.compute(doc=doc, email=EDITOR)
        self.assertTrue(state.status_text.startswith(REJECTED_PREFIX))
        self.assertTrue(state.status_description)

    def test_editor_hint_while_editing(self) -> None:
        doc = _doc("EDITING", tasks=[task("EDITOR", EDITOR)])
        self.assertEqual(assignment_hint(doc, EDITOR), f"Assigned as editor at {ASSIGNED_AT}")
        self.assertEqual(assignment_hint(doc, "other@example.com"), "")

    def test_reviewer_hint_while_reviewing(self) -> None:
        doc = _doc("REVIEWING", tasks=[task("REVIEWER", REVIEWER)])
        state = self.svc.compute(doc=doc, email=REVIEWER.upper())
        self.assertEqual(state.assignment_hint, f"Assigned as reviewer at {ASSIGNED_AT}")

    def test_no_hint_in_other_states_or_without_timestamp(self) -> None:
        self.assertEqual(assignment_hint(_doc("SIGNING", tasks=[task("REVIEWER", REVIEWER)]), REVIEWER), "")
        undated = _doc("EDITING", tasks=[task("EDITOR", EDITOR, createdAt=None)])
        self.assertEqual(assignment_hint(undated, EDITOR), "")


if __name__ == "__main__":
    unittest.main()
