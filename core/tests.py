from django.test import SimpleTestCase
from unittest.mock import patch

from .lock import acquire_lock, release_lock


class RedisLockTestCase(SimpleTestCase):

    @patch('core.lock.redis_client')
    def test_acquire_sets_nx_with_ttl(self, redis_client):
        redis_client.set.return_value = True

        token = acquire_lock('hold:v:2030-06-04:18', 300, token='tok')

        self.assertEqual(token, 'tok')
        redis_client.set.assert_called_once_with('hold:v:2030-06-04:18', 'tok', nx=True, ex=300)

    @patch('core.lock.redis_client')
    def test_acquire_generates_token(self, redis_client):
        redis_client.set.return_value = True

        self.assertTrue(acquire_lock('key', 10))

    @patch('core.lock.redis_client')
    def test_acquire_taken(self, redis_client):
        """Занятый ключ - None"""
        redis_client.set.return_value = None

        self.assertIsNone(acquire_lock('key', 10))

    @patch('core.lock.redis_client')
    def test_release_compares_token(self, redis_client):
        redis_client.eval.return_value = 1

        self.assertEqual(release_lock('key', 'tok'), 1)
        args = redis_client.eval.call_args[0]
        self.assertIn('redis.call("get", KEYS[1]) == ARGV[1]', args[0])
        self.assertEqual(args[1:], (1, 'key', 'tok'))
