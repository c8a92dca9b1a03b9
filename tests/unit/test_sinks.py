import json
import pytest
import requests
from unittest.mock import patch, MagicMock

from agrochain.errors import DeliveryFailure
from agrochain.events.sinks import (
    CALLBACK_ROUTES, DaprPubSubSink, HttpCallbackSink, InMemorySink, LoggingSink,
    build_event_sink, build_callback_sink
)

METADATA = {
    'eventId': 'evt-1',
    'source': 'billing-service',
    'dedupeKey': 'harvest.status:h-1:INVOICED',
    'correlationId': '4bf92f3577b34da6a3ce929d0e0e4736',
}


def _response(status_code):
    response = MagicMock()
    response.status_code = status_code
    return response


class TestHttpCallbackSink:
    """Test the billing -> harvest status callback transport."""

    def _sink(self, session):
        return HttpCallbackSink('http://harvest:5001/', CALLBACK_ROUTES, timeout=2.0, session=session)

    def test_put_to_harvest_status(self):
        session = MagicMock()
        session.request.return_value = _response(200)

        self._sink(session).deliver('harvest.status', {'harvestId': 'h-1', 'invoiceId': '7'}, METADATA)

        session.request.assert_called_once()
        args, kwargs = session.request.call_args
        assert args == ('PUT', 'http://harvest:5001/api/harvests/h-1/status')
        assert kwargs['json'] == {'harvestId': 'h-1', 'invoiceId': '7'}
        assert kwargs['timeout'] == 2.0
        assert kwargs['headers']['X-Dedupe-Key'] == 'harvest.status:h-1:INVOICED'
        assert kwargs['headers']['X-Correlation-ID'] == METADATA['correlationId']

    @pytest.mark.parametrize('status_code', [500, 503, 429, 408])
    def test_transient_status_is_retryable(self, status_code):
        session = MagicMock()
        session.request.return_value = _response(status_code)

        with pytest.raises(DeliveryFailure) as exc_info:
            self._sink(session).deliver('harvest.status', {'harvestId': 'h-1', 'invoiceId': '7'}, METADATA)
        assert exc_info.value.retryable is True

    @pytest.mark.parametrize('status_code', [400, 404, 409])
    def test_client_error_is_permanent(self, status_code):
        session = MagicMock()
        session.request.return_value = _response(status_code)

        with pytest.raises(DeliveryFailure) as exc_info:
            self._sink(session).deliver('harvest.status', {'harvestId': 'h-1', 'invoiceId': '7'}, METADATA)
        assert exc_info.value.retryable is False

    def test_timeout_is_retryable(self):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(DeliveryFailure) as exc_info:
            self._sink(session).deliver('harvest.status', {'harvestId': 'h-1', 'invoiceId': '7'}, METADATA)
        assert exc_info.value.retryable is True

    def test_connection_error_is_retryable(self):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(DeliveryFailure) as exc_info:
            self._sink(session).deliver('harvest.status', {'harvestId': 'h-1', 'invoiceId': '7'}, METADATA)
        assert exc_info.value.retryable is True

    def test_unknown_topic_and_missing_key(self):
        sink = self._sink(MagicMock())

        with pytest.raises(DeliveryFailure) as exc_info:
            sink.build_url('other.topic', {})
        assert exc_info.value.retryable is False

        with pytest.raises(DeliveryFailure) as exc_info:
            sink.build_url('harvest.status', {'invoiceId': '7'})
        assert exc_info.value.retryable is False


class TestDaprPubSubSink:
    """Test publishing through the Dapr client."""

    @patch('agrochain.events.sinks.DaprClient')
    def test_publish_event(self, mock_client_class):
        client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = client

        DaprPubSubSink('agrochain-pubsub').deliver(
            'nueva_cosecha', {'harvestId': 'h-1', 'product': 'Arroz Oro', 'tonnes': 2.0}, METADATA
        )

        client.publish_event.assert_called_once()
        kwargs = client.publish_event.call_args.kwargs
        assert kwargs['pubsub_name'] == 'agrochain-pubsub'
        assert kwargs['topic_name'] == 'nueva_cosecha'
        assert json.loads(kwargs['data']) == {'harvestId': 'h-1', 'product': 'Arroz Oro', 'tonnes': 2.0}
        assert kwargs['publish_metadata']['cloudevent.id'] == 'evt-1'

    @patch('agrochain.events.sinks.DaprClient')
    def test_publish_failure_is_retryable(self, mock_client_class):
        client = MagicMock()
        client.publish_event.side_effect = RuntimeError('sidecar not ready')
        mock_client_class.return_value.__enter__.return_value = client

        with pytest.raises(DeliveryFailure) as exc_info:
            DaprPubSubSink('agrochain-pubsub').deliver('nueva_cosecha', {'harvestId': 'h-1'}, METADATA)
        assert exc_info.value.retryable is True


class TestInMemorySink:
    """Test the in-process sink."""

    def test_records_and_fans_out(self):
        sink = InMemorySink()
        received = []
        sink.subscribe('nueva_cosecha', received.append)

        sink.deliver('nueva_cosecha', {'harvestId': 'h-1'}, METADATA)

        assert received == [{'harvestId': 'h-1'}]
        assert sink.payloads('nueva_cosecha') == [{'harvestId': 'h-1'}]
        assert sink.payloads('inventario_ajustado') == []

    def test_failing_subscriber_fails_delivery(self):
        sink = InMemorySink()
        sink.subscribe('nueva_cosecha', MagicMock(side_effect=ValueError('boom')))

        with pytest.raises(DeliveryFailure):
            sink.deliver('nueva_cosecha', {'harvestId': 'h-1'}, METADATA)
        assert sink.published == []

    def test_clear(self):
        sink = InMemorySink()
        sink.deliver('nueva_cosecha', {'harvestId': 'h-1'}, METADATA)
        sink.clear()
        assert sink.published == []


class TestSinkFactories:
    """Test sink selection from configuration."""

    def test_event_sinks(self):
        assert isinstance(build_event_sink({'EVENT_SINK': 'dapr', 'DAPR_PUBSUB_NAME': 'p'}), DaprPubSubSink)
        assert isinstance(build_event_sink({'EVENT_SINK': 'memory'}), InMemorySink)
        assert isinstance(build_event_sink({'EVENT_SINK': 'log'}), LoggingSink)
        with pytest.raises(ValueError):
            build_event_sink({'EVENT_SINK': 'kafka'})

    def test_callback_sinks(self):
        sink = build_callback_sink({'CALLBACK_SINK': 'http', 'HARVEST_SERVICE_URL': 'http://harvest:5001'})
        assert isinstance(sink, HttpCallbackSink)
        assert sink.base_url == 'http://harvest:5001'
        assert isinstance(build_callback_sink({'CALLBACK_SINK': 'memory'}), InMemorySink)
        with pytest.raises(ValueError):
            build_callback_sink({'CALLBACK_SINK': 'smtp'})
