"""Conversation feature: message store, model client, orchestration, and router.

A turn appends the user's message to its thread, replays the whole thread
(behind a fixed system instruction) to the chat model, appends the reply,
and returns it. Messages live in one SQLite table; nothing is ever updated
or deleted.
"""
