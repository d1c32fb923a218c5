"""
Test cases for the WebSocket control server message handling
"""

import json
import unittest
from unittest.mock import AsyncMock

from prometheus_client import CollectorRegistry

from ..control_server import ControlServer
from ..core.models import BotConfig
from ..trading_bot import TradingBot

class TestControlServer(unittest.IsolatedAsyncioTestCase):
    """Test cases for ControlServer.handle_message"""

    async def asyncSetUp(self):
        self.bot = TradingBot(BotConfig(tick_interval=0.01), registry=CollectorRegistry())
        self.server = ControlServer(self.bot)

    async def asyncTearDown(self):
        await self.bot.stop()

    async def test_status(self):
        response = await self.server.handle_message({'type': 'STATUS'})

        self.assertEqual(response['type'], 'STATUS')
        self.assertTrue(response['success'])
        self.assertEqual(response['data']['status']['current_balance'], 50.0)
        self.assertEqual(response['data']['config']['symbol'], 'BTC/USD')
        json.dumps(response)

    async def test_start_stop(self):
        response = await self.server.handle_message({'type': 'START'})
        self.assertTrue(response['success'])
        self.assertTrue(response['data']['status']['is_running'])

        response = await self.server.handle_message({'type': 'STOP'})
        self.assertTrue(response['success'])
        self.assertFalse(response['data']['status']['is_running'])

        response = await self.server.handle_message({'type': 'STOP'})
        self.assertFalse(response['success'])

    async def test_reset(self):
        await self.server.handle_message({'type': 'START'})
        response = await self.server.handle_message({'type': 'RESET'})

        self.assertTrue(response['success'])
        self.assertEqual(response['data']['actions'], [])
        self.assertFalse(response['data']['status']['is_running'])

    async def test_connect_broker(self):
        response = await self.server.handle_message({'type': 'CONNECT_BROKER'})
        self.assertFalse(response['success'])
        self.assertEqual(response['data']['actions'][0]['type'], 'BROKER_ERROR')

    async def test_unknown_type(self):
        response = await self.server.handle_message({'type': 'LAUNCH'})
        self.assertEqual(response['type'], 'ERROR')
        self.assertFalse(response['success'])

    async def test_invalid_json(self):
        response = await self.server.handle_raw("not json")
        self.assertEqual(response['type'], 'ERROR')

    async def test_handler_errors_become_responses(self):
        self.bot.start = AsyncMock(side_effect=RuntimeError("boom"))
        response = await self.server.handle_raw(json.dumps({'type': 'START'}))
        self.assertEqual(response['type'], 'ERROR')
        self.assertEqual(response['data']['error'], 'boom')

    async def test_handler_replies_per_message(self):
        websocket = FakeWebSocket([json.dumps({'type': 'STATUS'}), "not json"])

        await self.server.handler(websocket)

        replies = [json.loads(m) for m in websocket.sent]
        self.assertEqual([r['type'] for r in replies], ['STATUS', 'ERROR'])
        self.assertEqual(self.server.clients, set())


class FakeWebSocket:
    """Connection yielding canned frames"""

    def __init__(self, messages):
        self.messages = messages
        self.sent = []

    async def _frames(self):
        for message in self.messages:
            yield message

    def __aiter__(self):
        return self._frames()

    async def send(self, message):
        self.sent.append(message)

if __name__ == '__main__':
    unittest.main()
