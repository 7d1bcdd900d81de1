from structlog.testing import capture_logs

from shop.utils.logging import get_logger


class TestGetLogger:
    def test_structured_fields_are_kept(self):
        logger = get_logger("shop.tests")

        with capture_logs() as logs:
            logger.warning("Reconcile failed, order stays pending", order_id="o-1")

        assert logs == [
            {
                "event": "Reconcile failed, order stays pending",
                "order_id": "o-1",
                "log_level": "warning",
            }
        ]

    def test_below_configured_level_is_dropped(self):
        # LOG_LEVEL=WARNING in conftest
        logger = get_logger("shop.tests")

        with capture_logs() as logs:
            logger.info("Order reserved", order_id="o-1")

        assert logs == []
