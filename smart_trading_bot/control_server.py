#!/usr/bin/env python3
"""
WebSocket control server for Smart Trading Bot
Author: Anhbaza
Version: 2.0.0

Accepts {"type": START|STOP|RESET|STATUS|CONNECT_BROKER} and replies with
{"type", "success", "data"} where data is the serialized bot state.
"""

import json
import logging
from typing import Any, Dict, Optional

import websockets

from .shared.constants import (
    CONTROL_SERVER_NAME,
    MSG_TYPE_CONNECT_BROKER,
    MSG_TYPE_ERROR,
    MSG_TYPE_RESET,
    MSG_TYPE_START,
    MSG_TYPE_STATUS,
    MSG_TYPE_STOP
)

logger = logging.getLogger(CONTROL_SERVER_NAME)

class ControlServer:
    def __init__(self, bot, host: str = 'localhost', port: int = 8765):
        """Initialize control server for a TradingBot"""
        self.bot = bot
        self.host = host
        self.port = port
        self.server = None
        self.clients = set()

    @staticmethod
    def error_response(message: str) -> Dict[str, Any]:
        return {'type': MSG_TYPE_ERROR, 'success': False, 'data': {'error': message}}

    async def handle_message(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Dispatch one control message to the bot

        Parameters:
        -----------
        data : Dict[str, Any]
            Decoded message with a 'type' key

        Returns:
        --------
        Dict[str, Any]
            Response carrying the bot state after the command
        """
        msg_type = data.get('type') if isinstance(data, dict) else None

        if msg_type == MSG_TYPE_START:
            success = await self.bot.start()
        elif msg_type == MSG_TYPE_STOP:
            success = await self.bot.stop()
        elif msg_type == MSG_TYPE_RESET:
            await self.bot.reset()
            success = True
        elif msg_type == MSG_TYPE_STATUS:
            success = True
        elif msg_type == MSG_TYPE_CONNECT_BROKER:
            success = await self.bot.connect_broker()
        else:
            logger.warning(f"[!] Unknown message type: {msg_type}")
            return self.error_response(f"Unknown message type: {msg_type}")

        return {
            'type': msg_type,
            'success': success,
            'data': self.bot.get_state().to_dict()
        }

    async def handle_raw(self, message) -> Dict[str, Any]:
        """Decode a raw frame and dispatch it"""
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            logger.error("[-] Invalid JSON message received")
            return self.error_response("Invalid JSON message")

        try:
            return await self.handle_message(data)
        except Exception as e:
            logger.error(f"[-] Error handling {data.get('type') if isinstance(data, dict) else data}: {str(e)}")
            return self.error_response(str(e))

    async def handler(self, websocket):
        """Handle client connection"""
        self.clients.add(websocket)
        logger.info(f"[+] Client connected ({len(self.clients)} total)")
        try:
            async for message in websocket:
                response = await self.handle_raw(message)
                await websocket.send(json.dumps(response, default=str))

        except websockets.exceptions.ConnectionClosed:
            logger.info("[-] Connection closed")
        finally:
            self.clients.discard(websocket)

    async def start(self):
        """Start WebSocket server and serve until closed"""
        try:
            self.server = await websockets.serve(self.handler, self.host, self.port)
            logger.info(f"[+] Control server started on ws://{self.host}:{self.port}")
            await self.server.wait_closed()

        except OSError as e:
            logger.error(f"[-] Server error: {str(e)}")
            raise

    async def stop(self):
        if self.server is None:
            return
        self.server.close()
        await self.server.wait_closed()
        self.server = None
        logger.info("[*] Control server stopped")
