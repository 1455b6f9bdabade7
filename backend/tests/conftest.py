"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import heapq
from typing import Any, Callable

import pytest

from app.errors import DocumentNotFound


# Sample sources

SAMPLE_P = "<p style={{color:'#333'}}>Sample text</p>"

SAMPLE_H1 = "<h1>Hello World</h1>"

CARD_JSX = '''import React from 'react';

export default function Card({ items }) {
  // The card renders a heading and a list
  return (
    <div className="card" style={{ padding: '16px', backgroundColor: '#ffffff' }}>
      <h1>Welcome</h1>
      <p>First paragraph</p>
      <div className="body">
        <p style={{ color: '#333', fontSize: 14 }}>Second paragraph</p>
        <button onClick={() => alert('hi')}>Click me</button>
      </div>
      {items.length > 0 && <span>{items.length} items</span>}
    </div>
  );
}
'''

FRAGMENT_JSX = '''const App = () => (
  <>
    <h2>Title</h2>
    <Layout.Section>
      <p>Inside a member tag</p>
    </Layout.Section>
  </>
);
'''

STYLE_REF_JSX = '''const styles = { box: { color: 'red' } };

export const Box = () => <div style={styles.box}>Boxed</div>;
'''

TYPESCRIPT_JSX = '''type Props<T> = { value: T };

const identity = <T,>(value: T): T => value;

export function Label<T extends string>({ value }: Props<T>) {
  const ratio = 1 / 2;
  const pattern = /<div>/g;
  return <label title={`value ${value}`}>{value}</label>;
}
'''


@pytest.fixture
def card_jsx() -> str:
    return CARD_JSX


@pytest.fixture
def fragment_jsx() -> str:
    return FRAGMENT_JSX


# Deterministic timers


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Virtual time for the coalescers: timers only fire inside ``advance()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[tuple[float, int, FakeTimer]] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        heapq.heappush(self._timers, (timer.when, self._seq, timer))
        self._seq += 1
        return timer

    def spawn(self, coro) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(coro)

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self.call_later(seconds, lambda: future.done() or future.set_result(None))
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self._settle()
        while self._timers and self._timers[0][0] <= target:
            when, _, timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self.now = when
            timer.callback()
            await self._settle()
        self.now = target
        await self._settle()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._timers if not t.cancelled)

    @staticmethod
    async def _settle() -> None:
        for _ in range(20):
            await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# Persistence double


class RecordingStore:
    """In-memory store that records calls and can be slowed down or made to fail."""

    def __init__(self, clock: FakeClock, delay: float = 0.0, failures: int = 0) -> None:
        self.clock = clock
        self.delay = delay
        self.failures = failures
        self.calls: list[tuple[str, str | None, str]] = []
        self.documents: dict[str, str] = {}

    async def create(self, initial_content: str) -> str:
        self.calls.append(("create", None, initial_content))
        await self._respond()
        document_id = f"doc-{len(self.documents) + 1}"
        self.documents[document_id] = initial_content
        return document_id

    async def get_by_id(self, document_id: str) -> str:
        if document_id not in self.documents:
            raise DocumentNotFound(f"Document {document_id} not found")
        return self.documents[document_id]

    async def update(self, document_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", document_id, fields["jsxCode"]))
        await self._respond()
        self.documents[document_id] = fields["jsxCode"]
        return {"id": document_id, **fields}

    async def _respond(self) -> None:
        if self.delay:
            await self.clock.sleep(self.delay)
        if self.failures:
            self.failures -= 1
            raise ConnectionError("store unavailable")
