import pytest

import inspector
from config import InspectorOptions
from events import Channel
from physics import Engine


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000.0


class FakeRender:
    """Stands in for the Dear PyGui renderer."""

    def __init__(self):
        self.after_render = Channel("after_render")
        self.drawn = 0

    def draw_inspector(self, ins):
        self.drawn += 1


@pytest.fixture
def engine():
    return Engine()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def options(tmp_path):
    return InspectorOptions(export_dir=str(tmp_path))


@pytest.fixture
def ins(engine, clock, options):
    i = inspector.create(engine, options=options)
    i.timers.clock = clock
    i.pre_tick()
    yield i
    inspector.destroy(i)


@pytest.fixture
def ins_with_render(engine, clock, options):
    i = inspector.create(engine, FakeRender(), options)
    i.timers.clock = clock
    i.pre_tick()
    yield i
    inspector.destroy(i)
