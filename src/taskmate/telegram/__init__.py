"""Telegram adapter."""

from .bot import TelegramBot, TelegramGateway, build_keyboard, parse_callback_data

__all__ = ["TelegramBot", "TelegramGateway", "build_keyboard", "parse_callback_data"]
