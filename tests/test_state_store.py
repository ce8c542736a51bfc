"""
Tests for the conversation state store: overwrite semantics and TTL eviction.
"""
import gc
import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conversation.models import ConversationStage
from conversation.state_store import ConversationStateStore


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestConversationStateStore(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.store = ConversationStateStore(ttl_seconds=600, clock=self.clock)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.store.get(42))

    def test_set_then_get(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL, {'full_name': 'Budi'})
        state = self.store.get(42)
        self.assertEqual(state.stage, ConversationStage.WAITING_EMAIL)
        self.assertEqual(state.payload, {'full_name': 'Budi'})
        self.assertEqual(state.last_touched_at, 1_000.0)

    def test_int_and_str_ids_share_a_slot(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL)
        self.assertIsNotNone(self.store.get('42'))

    def test_set_overwrites(self):
        self.store.set(42, ConversationStage.WAITING_CONFIRMATION, {'gmv_amount': 1})
        self.store.set(42, ConversationStage.WAITING_CONFIRMATION, {'gmv_amount': 2})
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.store.get(42).payload['gmv_amount'], 2)

    def test_payload_is_copied(self):
        payload = {'full_name': 'Budi'}
        self.store.set(42, ConversationStage.WAITING_EMAIL, payload)
        payload['full_name'] = 'changed'
        self.assertEqual(self.store.get(42).payload['full_name'], 'Budi')

    def test_clear(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL)
        self.store.clear(42)
        self.assertIsNone(self.store.get(42))
        self.store.clear(42)  # clearing twice is harmless

    def test_still_live_at_exact_ttl(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL)
        self.clock.now += 600
        self.assertIsNotNone(self.store.get(42))

    def test_expired_state_is_evicted(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL)
        self.clock.now += 601
        self.assertIsNone(self.store.get(42))
        self.assertNotIn(42, self.store)
        self.assertEqual(len(self.store), 0)

    def test_set_refreshes_expiry(self):
        self.store.set(42, ConversationStage.WAITING_EMAIL)
        self.clock.now += 500
        self.store.set(42, ConversationStage.WAITING_PASSWORD)
        self.clock.now += 500
        self.assertEqual(self.store.get(42).stage, ConversationStage.WAITING_PASSWORD)

    def test_user_lock_is_per_user(self):
        self.assertIs(self.store.user_lock(1), self.store.user_lock('1'))
        self.assertIsNot(self.store.user_lock(1), self.store.user_lock(2))

    def test_unused_user_locks_are_released(self):
        lock = self.store.user_lock(1)
        self.assertIs(self.store.user_lock(1), lock)
        del lock
        gc.collect()
        for user_id in range(100, 200):
            self.store.user_lock(user_id)
        gc.collect()
        self.assertEqual(len(self.store._locks), 0)

    def test_logs_transitions(self):
        logger = MagicMock()
        store = ConversationStateStore(clock=self.clock, logger=logger)
        store.set(7, ConversationStage.WAITING_FULL_NAME)
        store.clear(7)
        logger.log_state_change.assert_any_call('7', 'WAITING_FULL_NAME')
        logger.log_state_change.assert_any_call('7', None)


if __name__ == '__main__':
    unittest.main()
