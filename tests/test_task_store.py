"""Tests for datadesk/store/tasks.py: users, questions, assignments."""

import pytest

from datadesk.exceptions import ConstraintViolation


@pytest.mark.asyncio
async def test_insert_question_defaults(task_store):
    question = await task_store.insert_question("Churn spike", "## Analysis Request\n...")

    assert question.id > 0
    assert question.status == "todo"
    assert question.reference_urls == []

    stored = await task_store.get_question(question.id)
    assert stored == question


@pytest.mark.asyncio
async def test_question_ids_increase(task_store):
    first = await task_store.insert_question("First", "a")
    second = await task_store.insert_question("Second", "b")
    assert second.id > first.id


@pytest.mark.asyncio
async def test_reference_urls_round_trip_in_order(task_store):
    question = await task_store.insert_question(
        "Links", "body", reference_urls=["http://b", "http://a", "http://c"]
    )
    stored = await task_store.get_question(question.id)
    assert stored.reference_urls == ["http://b", "http://a", "http://c"]


@pytest.mark.asyncio
async def test_invalid_status_rejected(task_store):
    with pytest.raises(ConstraintViolation, match="Invalid status"):
        await task_store.insert_question("Bad", "body", status="blocked")


@pytest.mark.asyncio
async def test_status_check_enforced_by_schema(db):
    import sqlite3

    async with db.get_connection() as conn:
        with pytest.raises(sqlite3.IntegrityError):
            await conn.execute(
                "INSERT INTO questions (title, content, status) VALUES ('t', 'c', 'blocked')"
            )
        await conn.rollback()


@pytest.mark.asyncio
async def test_get_missing_question_returns_none(task_store):
    assert await task_store.get_question(999) is None


@pytest.mark.asyncio
async def test_list_questions_filters_by_status(task_store):
    await task_store.insert_question("A", "a")
    await task_store.insert_question("B", "b", status="done")

    todo = await task_store.list_questions(status="todo")
    assert [q.title for q in todo] == ["A"]
    everything = await task_store.list_questions()
    assert [q.title for q in everything] == ["B", "A"]


@pytest.mark.asyncio
async def test_duplicate_email_is_constraint_violation(task_store):
    await task_store.create_user("Ada", "ada@example.com")
    with pytest.raises(ConstraintViolation):
        await task_store.create_user("Another Ada", "ada@example.com")


@pytest.mark.asyncio
async def test_find_users_by_email(task_store):
    ada = await task_store.create_user("Ada", "ada@example.com")
    await task_store.create_user("Grace", "grace@example.com")

    assert await task_store.find_users_by_email("ada@example.com") == [ada]
    assert await task_store.find_users_by_email("nobody@example.com") == []


@pytest.mark.asyncio
async def test_assignment_requires_existing_question(task_store):
    user = await task_store.create_user("Ada", "ada@example.com")
    with pytest.raises(ConstraintViolation):
        await task_store.insert_assignment(12345, user.id)


@pytest.mark.asyncio
async def test_assignment_requires_existing_user(task_store):
    question = await task_store.insert_question("Q", "body")
    with pytest.raises(ConstraintViolation):
        await task_store.insert_assignment(question.id, 12345)


@pytest.mark.asyncio
async def test_insert_and_list_assignments(task_store):
    user = await task_store.create_user("Ada", "ada@example.com")
    question = await task_store.insert_question("Q", "body")

    assignment = await task_store.insert_assignment(question.id, user.id)

    assert assignment.question_id == question.id
    assert assignment.user_id == user.id
    assert await task_store.list_assignments(question_id=question.id) == [assignment]
    assert await task_store.list_assignments(user_id=user.id) == [assignment]


@pytest.mark.asyncio
async def test_deleting_question_cascades_to_assignments(task_store):
    user = await task_store.create_user("Ada", "ada@example.com")
    question = await task_store.insert_question("Q", "body")
    other = await task_store.insert_question("Other", "body")
    await task_store.insert_assignment(question.id, user.id)
    await task_store.insert_assignment(other.id, user.id)

    assert await task_store.delete_question(question.id) is True

    assert await task_store.list_assignments(question_id=question.id) == []
    assert len(await task_store.list_assignments(user_id=user.id)) == 1


@pytest.mark.asyncio
async def test_deleting_user_cascades_to_assignments(task_store):
    ada = await task_store.create_user("Ada", "ada@example.com")
    grace = await task_store.create_user("Grace", "grace@example.com")
    question = await task_store.insert_question("Q", "body")
    await task_store.insert_assignment(question.id, ada.id)
    await task_store.insert_assignment(question.id, grace.id)

    assert await task_store.delete_user(ada.id) is True

    remaining = await task_store.list_assignments(question_id=question.id)
    assert [a.user_id for a in remaining] == [grace.id]
    assert await task_store.get_question(question.id) is not None


@pytest.mark.asyncio
async def test_delete_missing_rows_returns_false(task_store):
    assert await task_store.delete_question(42) is False
    assert await task_store.delete_user(42) is False


@pytest.mark.asyncio
async def test_store_transaction_groups_writes(task_store):
    with pytest.raises(ConstraintViolation):
        async with task_store.transaction():
            question = await task_store.insert_question("Q", "body")
            await task_store.insert_assignment(question.id, 999)

    assert await task_store.list_questions() == []
