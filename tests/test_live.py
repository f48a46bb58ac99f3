"""Change notification and live results."""

from stockroom.errors import ProductNotFound
from stockroom.live import ChangeEvent, ChangeKind, ChangeNotifier, LiveResult
from stockroom.schemas.result import Error, Loading, Success


class TestChangeNotifier:
    def test_keyed_and_wildcard_listeners(self):
        notifier = ChangeNotifier()
        keyed, wildcard = [], []
        notifier.add_listener(keyed.append, product_id=1)
        notifier.add_listener(wildcard.append)

        notifier.notify(ChangeEvent(2, ChangeKind.STOCK))
        notifier.notify(ChangeEvent(1, ChangeKind.STOCK))
        notifier.notify(ChangeEvent(None, ChangeKind.RESET))

        assert [e.product_id for e in keyed] == [1, None]
        assert [e.product_id for e in wildcard] == [2, 1, None]

    def test_failing_listener_does_not_stop_the_others(self, caplog):
        notifier = ChangeNotifier()
        heard = []

        def broken(event):
            raise RuntimeError("boom")

        notifier.add_listener(broken)
        notifier.add_listener(heard.append)
        notifier.notify(ChangeEvent(1, ChangeKind.STOCK))

        assert len(heard) == 1
        assert "Change listener failed" in caplog.text

    def test_remove_listener(self):
        notifier = ChangeNotifier()
        token = notifier.add_listener(lambda e: None)
        assert notifier.listener_count() == 1
        notifier.remove_listener(token)
        notifier.remove_listener(token)
        assert notifier.listener_count() == 0


class TestLiveResult:
    def test_current_wraps_ledger_errors(self):
        def loader():
            raise ProductNotFound(5)

        result = LiveResult(loader, ChangeNotifier()).current()
        assert isinstance(result, Error)
        assert result.message == "Product not found"
        assert isinstance(result.cause, ProductNotFound)

    def test_map_transforms_the_loaded_value(self):
        live = LiveResult(lambda: [1, 2, 3], ChangeNotifier()).map(sum)
        assert live.current() == Success(data=6)

    def test_subscription_lifecycle(self):
        notifier = ChangeNotifier()
        state = {"value": 1}
        results = []

        subscription = LiveResult(lambda: state["value"], notifier).subscribe(results.append)
        assert isinstance(results[0], Loading)
        assert results[1].data == 1

        state["value"] = 2
        notifier.notify(ChangeEvent(7, ChangeKind.STOCK))
        assert results[-1].data == 2
        assert subscription.last.data == 2

        subscription.close()
        assert subscription.closed
        assert notifier.listener_count() == 0
        notifier.notify(ChangeEvent(7, ChangeKind.STOCK))
        assert len(results) == 3
        assert sum(isinstance(r, Loading) for r in results) == 1

    def test_kinds_filter_irrelevant_changes(self):
        notifier = ChangeNotifier()
        results = []
        live = LiveResult(lambda: "x", notifier, kinds={ChangeKind.PRODUCT_ADDED})
        with live.subscribe(results.append):
            notifier.notify(ChangeEvent(1, ChangeKind.STOCK))
            assert len(results) == 2
            notifier.notify(ChangeEvent(1, ChangeKind.PRODUCT_ADDED))
            assert len(results) == 3
        assert notifier.listener_count() == 0

    def test_keyed_subscription_ignores_other_products(self):
        notifier = ChangeNotifier()
        results = []
        subscription = LiveResult(lambda: "x", notifier, product_id=1).subscribe(results.append)
        notifier.notify(ChangeEvent(2, ChangeKind.STOCK))
        assert len(results) == 2
        notifier.notify(ChangeEvent(None, ChangeKind.RESET))
        assert len(results) == 3
        subscription.close()

    def test_replace_source_rekeys_the_listener(self):
        notifier = ChangeNotifier()
        results = []
        subscription = LiveResult(lambda: "a", notifier, product_id=1).subscribe(results.append)
        subscription.replace_source(LiveResult(lambda: "b", notifier, product_id=2))
        assert results[-1].data == "b"

        notifier.notify(ChangeEvent(1, ChangeKind.STOCK))
        assert len(results) == 3
        notifier.notify(ChangeEvent(2, ChangeKind.STOCK))
        assert len(results) == 4
        assert notifier.listener_count() == 1
        subscription.close()
