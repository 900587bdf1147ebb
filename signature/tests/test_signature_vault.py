from __future__ import annotations

import json
import unittest

from core.logging.logic.logger import logger
from core.storage.kv_store import InMemoryKeyValueStore
from signature.logic.signature_vault import VAULT_KEY, SignatureVault


class TestSignatureVault(unittest.TestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        logger.clear_logs()
        self.store = InMemoryKeyValueStore()

    def test_add_persists_full_list(self) -> None:
        vault = SignatureVault(self.store)
        a = vault.add("Formal", "data:image/png;base64,AAAA")
        vault.add("  ", "data:image/png;base64,BBBB")
        stored = json.loads(self.store.get(VAULT_KEY))
        self.assertEqual(len(stored), 2)
        self.assertEqual(stored[0]["id"], a.id)
        self.assertIn("createdAt", stored[0])
        self.assertEqual(stored[1]["name"], "Signature")

    def test_delete_last_leaves_empty_list(self) -> None:
        vault = SignatureVault(self.store)
        entry = vault.add("Only", "data:image/png;base64,AAAA")
        self.assertTrue(vault.remove(entry.id))
        self.assertEqual(self.store.get(VAULT_KEY), "[]")
        self.assertEqual(len(SignatureVault(self.store)), 0)

    def test_remove_unknown_id(self) -> None:
        self.assertFalse(SignatureVault(self.store).remove("nope"))
        self.assertIsNone(self.store.get(VAULT_KEY))

    def test_reopen_sees_saved_entries(self) -> None:
        SignatureVault(self.store).add("Initials", "data:image/png;base64,AAAA")
        again = SignatureVault(self.store)
        self.assertEqual([e.name for e in again.list()], ["Initials"])

    def test_corrupt_contents_read_as_empty(self) -> None:
        for raw in ("{not json", '{"a": 1}', '[{"name": "no id"}]'):
            with self.subTest(raw=raw):
                self.store.set(VAULT_KEY, raw)
                self.assertEqual(SignatureVault(self.store).list(), [])
        self.assertTrue(logger.query_logs(feature="SignatureVault", event="VaultCorrupt"))

    def test_corrupt_vault_is_replaced_on_next_add(self) -> None:
        self.store.set(VAULT_KEY, "garbage")
        vault = SignatureVault(self.store)
        vault.add("New", "data:image/png;base64,AAAA")
        self.assertEqual(len(json.loads(self.store.get(VAULT_KEY))), 1)


if __name__ == "__main__":
    unittest.main()
