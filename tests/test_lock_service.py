from unittest.mock import MagicMock

from shop.services.lock_service import LockService, _RELEASE_LUA


class TestLockService:
    def test_acquire_sets_key_with_ttl(self):
        client = MagicMock()
        client.set.return_value = True

        token = LockService(client=client).acquire_checkout_lock("u1", ttl=30)

        assert token
        client.set.assert_called_once_with(name="cart:u1:checkout", value=token, nx=True, ex=30)

    def test_acquire_when_held(self):
        client = MagicMock()
        client.set.return_value = None
        client.get.return_value = "other-token"

        assert LockService(client=client).acquire_checkout_lock("u1", ttl=30) is None

    def test_acquire_recognises_own_token(self):
        client = MagicMock()
        client.set.return_value = None
        client.get.side_effect = lambda key: client.set.call_args.kwargs["value"]

        assert LockService(client=client).acquire_checkout_lock("u1", ttl=30) is not None

    def test_release_compares_token(self):
        client = MagicMock()
        client.eval.return_value = 0

        released = LockService(client=client).release_checkout_lock("u1", "tok")

        assert released is False
        client.eval.assert_called_once_with(_RELEASE_LUA, 1, "cart:u1:checkout", "tok")
