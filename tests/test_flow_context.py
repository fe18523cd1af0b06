import asyncio

import pytest


def test_run_pending_drains_nested_tasks(context):
    order = []

    async def inner():
        order.append("inner")

    async def outer():
        order.append("outer")
        context.spawn(inner())

    context.spawn(outer())
    assert context.has_pending
    context.run_pending()

    assert order == ["outer", "inner"]
    assert not context.has_pending


def test_run_pending_reraises_task_errors(context):
    async def broken():
        raise ValueError("boom")

    context.spawn(broken())
    with pytest.raises(ValueError):
        context.run_pending()


def test_cancelled_tasks_are_ignored(context):
    async def slow():
        await asyncio.sleep(10)

    task = context.spawn(slow())
    task.cancel()
    context.run_pending()

    assert task.cancelled()
