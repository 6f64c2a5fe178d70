"""
Unit Tests - Live Channel Forwarding
"""
import asyncio

import pytest

from commerce_hub.serving.api.routes.live import _stop_forwarding


class TestStopForwarding:
    """Tests for tearing down a client's forwarding task"""

    @pytest.mark.asyncio
    async def test_cancels_running_forwarder(self):
        forwarder = asyncio.create_task(asyncio.sleep(60))

        await _stop_forwarding(forwarder)

        assert forwarder.cancelled()

    @pytest.mark.asyncio
    async def test_failed_send_does_not_escape(self):
        async def send_on_closed_socket():
            raise RuntimeError('Cannot call "send" once a close message has been sent.')

        forwarder = asyncio.create_task(send_on_closed_socket())
        await asyncio.sleep(0)

        await _stop_forwarding(forwarder)

        assert isinstance(forwarder.exception(), RuntimeError)
