# tests/conftest.py
"""
Shared fixtures: a fresh executor and a small conversation driver that
feeds commands one by one, the way a chat session does.
"""

import pytest

from nlp_engine.context_memory import ConversationContext
from schema_engine.model import Schema
from services.command_executor import CommandExecutor


class Conversation(object):
    """Applies commands in order and keeps the latest schema and result."""

    def __init__(self, executor):
        self.executor = executor
        self.schema = Schema()
        self.context = ConversationContext()
        self.last = None

    def say(self, text):
        self.last = self.executor.run(self.schema, text, self.context)
        self.schema = self.last.schema
        return self.last

    def table(self, name):
        return self.schema.get_table(name, fuzzy=False)


@pytest.fixture
def executor():
    return CommandExecutor()


@pytest.fixture
def conversation(executor):
    return Conversation(executor)
