import pytest


class MemoryStore:
    def __init__(self, content=''):
        self.content = content
        self.writes = []

    async def read(self):
        return self.content

    async def write(self, content):
        self.content = content
        self.writes.append(content)


@pytest.fixture
def store():
    return MemoryStore()
