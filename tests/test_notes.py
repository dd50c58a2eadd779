from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec
import pytest

from notekeeper.domain.notes.schemas import NoteCreate, NoteFilter, NotePatch
from notekeeper.lib.exceptions import ValidationError

if TYPE_CHECKING:
    from conftest import FakeClock

    from notekeeper.domain.notes.services import NoteRepository


def new_note(title: str = "Title", content: str = "Body", **kwargs: object) -> NoteCreate:
    return NoteCreate(title=title, content=content, **kwargs)  # pyright: ignore[reportArgumentType]


@pytest.mark.asyncio
async def test_create_defaults(note_repository: NoteRepository, clock: FakeClock) -> None:
    note = await note_repository.create("u1", new_note())

    assert note.owner_id == "u1"
    assert note.is_public is False
    assert note.tags == []
    assert note.category == "General"
    assert note.views == 0
    assert note.deleted is False
    assert note.created_at == note.updated_at == clock.now


@pytest.mark.asyncio
async def test_create_deduplicates_tags(note_repository: NoteRepository) -> None:
    note = await note_repository.create("u1", new_note(tags=["b", "a", "b", "c", "a"]))

    assert note.tags == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_get_counts_views(note_repository: NoteRepository) -> None:
    note = await note_repository.create("u1", new_note())

    await note_repository.get("u1", note.id)
    fetched = await note_repository.get("u1", note.id)

    assert fetched is not None
    assert fetched.views == 2


@pytest.mark.asyncio
async def test_foreign_and_missing_notes_are_invisible(
    note_repository: NoteRepository,
) -> None:
    note = await note_repository.create("u1", new_note())

    assert await note_repository.get("u2", note.id) is None
    assert await note_repository.get("u1", "missing") is None
    assert await note_repository.update("u2", note.id, NotePatch(title="x")) is None
    assert not await note_repository.delete("u2", note.id)
    assert await note_repository.audit("u2", note.id) is None

    # the failed foreign get did not count a view
    fetched = await note_repository.get("u1", note.id)
    assert fetched is not None
    assert fetched.views == 1


@pytest.mark.asyncio
async def test_list_is_scoped_and_ordered(
    note_repository: NoteRepository, clock: FakeClock
) -> None:
    first = await note_repository.create("u1", new_note("first"))
    clock.advance(minutes=1)
    second = await note_repository.create("u1", new_note("second"))
    await note_repository.create("u2", new_note("foreign"))

    notes = await note_repository.list("u1")
    assert [n.id for n in notes] == [second.id, first.id]

    clock.advance(minutes=1)
    await note_repository.update("u1", first.id, NotePatch(content="edited"))

    notes = await note_repository.list("u1")
    assert [n.id for n in notes] == [first.id, second.id]


@pytest.mark.asyncio
async def test_search_is_case_insensitive(note_repository: NoteRepository) -> None:
    by_title = await note_repository.create("u1", new_note("Shopping List"))
    by_content = await note_repository.create("u1", new_note(content="buy MILK"))
    by_tag = await note_repository.create("u1", new_note(tags=["Groceries"]))
    await note_repository.create("u1", new_note("unrelated"))

    assert [n.id for n in await note_repository.list("u1", search="shopping")] == [
        by_title.id
    ]
    assert [n.id for n in await note_repository.list("u1", search="milk")] == [
        by_content.id
    ]
    assert [n.id for n in await note_repository.list("u1", search="GROCER")] == [
        by_tag.id
    ]
    assert len(await note_repository.list("u1", search="")) == 4


@pytest.mark.asyncio
async def test_filters(note_repository: NoteRepository, clock: FakeClock) -> None:
    old_public = await note_repository.create("u1", new_note(is_public=True))
    clock.advance(days=7)
    private = await note_repository.create("u1", new_note())

    public_ids = [n.id for n in await note_repository.list("u1", filter=NoteFilter.PUBLIC)]
    private_ids = [
        n.id for n in await note_repository.list("u1", filter=NoteFilter.PRIVATE)
    ]
    # updated exactly 7 days ago is no longer recent
    recent_ids = [n.id for n in await note_repository.list("u1", filter=NoteFilter.RECENT)]

    assert public_ids == [old_public.id]
    assert private_ids == [private.id]
    assert recent_ids == [private.id]


@pytest.mark.asyncio
async def test_update_applies_only_provided_fields(
    note_repository: NoteRepository, clock: FakeClock
) -> None:
    note = await note_repository.create(
        "u1", new_note(tags=["a"], category="Work", is_public=True)
    )
    clock.advance(minutes=3)

    updated = await note_repository.update(
        "u1", note.id, NotePatch(title="New", tags=["x", "x", "y"])
    )

    assert updated is not None
    assert updated.title == "New"
    assert updated.content == "Body"
    assert updated.tags == ["x", "y"]
    assert updated.category == "Work"
    assert updated.is_public is True
    assert updated.updated_at == clock.now
    assert updated.created_at == note.created_at


@pytest.mark.asyncio
async def test_empty_patch_changes_nothing(
    note_repository: NoteRepository, clock: FakeClock
) -> None:
    note = await note_repository.create("u1", new_note())
    clock.advance(minutes=3)

    updated = await note_repository.update("u1", note.id, NotePatch())

    assert updated is not None
    assert updated.updated_at == note.updated_at


@pytest.mark.asyncio
async def test_soft_delete(note_repository: NoteRepository, clock: FakeClock) -> None:
    note = await note_repository.create("u1", new_note())
    clock.advance(minutes=1)

    assert await note_repository.delete("u1", note.id)
    assert not await note_repository.delete("u1", note.id)

    assert await note_repository.get("u1", note.id) is None
    assert await note_repository.list("u1") == []
    assert await note_repository.update("u1", note.id, NotePatch(title="x")) is None

    audited = await note_repository.audit("u1", note.id)
    assert audited is not None
    assert audited.deleted is True
    assert audited.deleted_at == clock.now
    assert audited.views == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "", "content": "c"},
        {"title": "t" * 201, "content": "c"},
        {"title": "t", "content": ""},
        {"title": "t", "content": "c" * 50001},
        {"title": "t", "content": "c", "tags": [""]},
        {"title": "t", "content": "c", "tags": ["t" * 31]},
        {"title": "t", "content": "c", "category": ""},
        {"title": "t", "content": "c", "category": "c" * 51},
    ],
)
def test_note_create_validation(payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        msgspec.convert(payload, NoteCreate)


def test_note_create_accepts_limits() -> None:
    note = msgspec.convert(
        {"title": "t" * 200, "content": "c" * 50000, "isPublic": True},
        NoteCreate,
    )

    assert note.is_public is True


def test_note_patch_rejects_unknown_fields() -> None:
    with pytest.raises(msgspec.ValidationError):
        msgspec.convert({"owner": "u2"}, NotePatch)
