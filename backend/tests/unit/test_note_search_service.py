from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from backend.src.models.note import Visibility
from backend.src.models.search import NoteSearchRequest
from backend.src.models.user import RolePolicies
from backend.src.services.config import AppConfig
from backend.src.services.errors import UnavailableError
from backend.src.services.note_search import NoteSearchService
from backend.src.services.note_store import NoteStore
from backend.src.services.query_service import QueryService
from backend.src.services.roles import RoleService
from backend.src.services.users import UserService

BASE = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _search(service: NoteSearchService, query: str, me=None, **kwargs) -> list[str]:
    request = NoteSearchRequest(query=query, **kwargs)
    return [note.text for note in service.search(request, me)]


@pytest.fixture()
def corpus(users: UserService, notes: NoteStore) -> dict:
    alice = users.create_user("Alice")
    bob = users.create_user("bob")
    carol = users.create_user("carol")

    def post(author, text, minutes, **kwargs):
        return notes.create_note(author.id, text, created_at=BASE + timedelta(minutes=minutes), **kwargs)

    post(alice, "release notes draft", 1, score=7)
    post(bob, "release party tonight", 2, score=2)
    post(carol, "unrelated musings", 3)
    post(alice, "100% coverage on release", 4, score=5)
    post(bob, "100 percent sure", 5)
    post(carol, "snake_case release names", 6)
    post(carol, "snakeXcase release names", 7)
    return {"alice": alice, "bob": bob, "carol": carol}


def test_free_text_is_case_insensitive(search_service: NoteSearchService, corpus: dict) -> None:
    assert _search(search_service, "RELEASE") == [
        "snakeXcase release names",
        "snake_case release names",
        "100% coverage on release",
        "release party tonight",
        "release notes draft",
    ]


def test_from_directive_limits_author(search_service: NoteSearchService, corpus: dict) -> None:
    assert _search(search_service, "release from:alice") == [
        "100% coverage on release",
        "release notes draft",
    ]


def test_unknown_author_is_ignored(search_service: NoteSearchService, corpus: dict) -> None:
    assert len(_search(search_service, "release from:doesnotexist")) == 5


def test_reactions_threshold(search_service: NoteSearchService, corpus: dict) -> None:
    assert _search(search_service, "release reactions:5") == [
        "100% coverage on release",
        "release notes draft",
    ]


@pytest.mark.parametrize("value", ["abc", "0", ""])
def test_reactions_without_usable_threshold(search_service: NoteSearchService, corpus: dict, value: str) -> None:
    assert len(_search(search_service, f"release reactions:{value}")) == 5


def test_like_wildcards_match_literally(search_service: NoteSearchService, corpus: dict) -> None:
    assert _search(search_service, "100%") == ["100% coverage on release"]
    assert _search(search_service, "snake_case") == ["snake_case release names"]


@pytest.mark.parametrize(
    "query, expected",
    [
        ("über", ["Über release"]),
        ("ÜBER", ["Über release"]),
        ("привет", ["ПРИВЕТ мир"]),
        ("МИР", ["ПРИВЕТ мир"]),
    ],
)
def test_free_text_folds_non_ascii_case(
    users: UserService, notes: NoteStore, search_service: NoteSearchService, query: str, expected
) -> None:
    alice = users.create_user("alice")
    notes.create_note(alice.id, "Über release")
    notes.create_note(alice.id, "ПРИВЕТ мир")
    notes.create_note(alice.id, "plain ascii")

    assert _search(search_service, query) == expected


@pytest.mark.parametrize(
    "zone, query",
    [
        ("America/New_York", "old end:9999-12-31"),
        ("Asia/Tokyo", "old start:0001-01-01"),
        ("UTC", "old start:0999-01-01"),
        ("Pacific/Kiritimati", "old start:0001-01-01 end:9999-12-31"),
    ],
)
def test_calendar_edge_dates_keep_matching(
    db_service, users: UserService, notes: NoteStore, zone: str, query: str
) -> None:
    config = AppConfig(database_path=db_service.db_path, search_timezone=zone)
    service = NoteSearchService(config=config)
    alice = users.create_user("alice")
    notes.create_note(alice.id, "old note", created_at=BASE)

    assert _search(service, query) == ["old note"]


def test_user_id_and_from_both_apply(search_service: NoteSearchService, corpus: dict) -> None:
    alice, bob = corpus["alice"], corpus["bob"]

    assert _search(search_service, "release from:alice", user_id=bob.id) == []
    assert _search(search_service, "release from:alice", user_id=alice.id) == [
        "100% coverage on release",
        "release notes draft",
    ]


def test_channel_filter(users: UserService, notes: NoteStore, search_service: NoteSearchService) -> None:
    alice = users.create_user("alice")
    notes.create_note(alice.id, "in channel", channel_id="ch1")
    notes.create_note(alice.id, "not in channel")

    assert _search(search_service, "channel", channel_id="ch1") == ["in channel"]


def test_limit_and_cursor_pagination(search_service: NoteSearchService, notes: NoteStore, corpus: dict) -> None:
    first_page = search_service.search(NoteSearchRequest(query="release", limit=2), None)
    assert [n.text for n in first_page] == ["snakeXcase release names", "snake_case release names"]

    next_page = search_service.search(
        NoteSearchRequest(query="release", limit=2, untilId=first_page[-1].id), None
    )
    assert [n.text for n in next_page] == ["100% coverage on release", "release party tonight"]

    forward = search_service.search(
        NoteSearchRequest(query="release", limit=2, sinceId=next_page[-1].id), None
    )
    assert [n.text for n in forward] == ["100% coverage on release", "snake_case release names"]


def test_anonymous_callers_only_see_timeline_visibilities(
    users: UserService, notes: NoteStore, search_service: NoteSearchService
) -> None:
    alice = users.create_user("alice")
    for visibility in Visibility:
        notes.create_note(alice.id, f"note {visibility.value}", visibility=visibility)

    assert sorted(_search(search_service, "note")) == ["note home", "note public"]


def test_followers_only_notes_visible_to_followers(
    users: UserService, notes: NoteStore, search_service: NoteSearchService
) -> None:
    alice = users.create_user("alice")
    follower = users.create_user("follower")
    stranger = users.create_user("stranger")
    users.follow(follower.id, alice.id)
    notes.create_note(alice.id, "for followers", visibility=Visibility.FOLLOWERS)
    notes.create_note(
        alice.id, "direct", visibility=Visibility.SPECIFIED, visible_user_ids=[stranger.id]
    )

    assert _search(search_service, "for", me=follower) == ["for followers"]
    assert _search(search_service, "for", me=stranger) == []
    assert _search(search_service, "direct", me=stranger) == ["direct"]
    assert _search(search_service, "direct", me=follower) == []


def test_followers_only_reply_is_visible_to_the_replied_user(
    users: UserService, notes: NoteStore, search_service: NoteSearchService
) -> None:
    me = users.create_user("me")
    replier = users.create_user("replier")
    stranger = users.create_user("stranger")
    question = notes.create_note(me.id, "question")
    notes.create_note(
        replier.id, "private answer", reply_id=question.id, visibility=Visibility.FOLLOWERS
    )

    assert _search(search_service, "answer", me=me) == ["private answer"]
    assert _search(search_service, "answer", me=stranger) == []
    assert _search(search_service, "answer") == []


def test_muted_and_blocking_authors_are_hidden(
    users: UserService, notes: NoteStore, search_service: NoteSearchService
) -> None:
    me = users.create_user("me")
    muted = users.create_user("muted")
    blocker = users.create_user("blocker")
    friend = users.create_user("friend")
    users.mute(me.id, muted.id)
    users.block(blocker.id, me.id)

    muted_note = notes.create_note(muted.id, "hello from muted")
    notes.create_note(blocker.id, "hello from blocker")
    notes.create_note(friend.id, "hello from friend")
    notes.create_note(friend.id, "hello reply to muted", reply_id=muted_note.id)

    assert _search(search_service, "hello", me=me) == ["hello from friend"]
    assert len(_search(search_service, "hello")) == 4


def test_home_directive(users: UserService, notes: NoteStore, search_service: NoteSearchService) -> None:
    bob = users.create_user("bob")
    fan = users.create_user("fan")
    other = users.create_user("other")
    users.follow(fan.id, bob.id)
    notes.create_note(bob.id, "tl bob")
    notes.create_note(fan.id, "tl fan")
    notes.create_note(other.id, "tl other")

    assert sorted(_search(search_service, "tl home:BOB")) == ["tl bob", "tl fan"]
    assert len(_search(search_service, "tl home:nobody")) == 3


def test_results_are_hydrated(users: UserService, notes: NoteStore, search_service: NoteSearchService) -> None:
    alice = users.create_user("alice", name="Alice A.")
    bob = users.create_user("bob")
    original = notes.create_note(alice.id, "original post")
    notes.create_note(bob.id, "reply text", reply_id=original.id)
    notes.create_note(bob.id, "boosted", renote_id=original.id)

    packed = search_service.search(NoteSearchRequest(query="reply text"), None)
    assert len(packed) == 1
    assert packed[0].user.username == "bob"
    assert packed[0].reply.id == original.id
    assert packed[0].reply.user.name == "Alice A."

    boosted = search_service.search(NoteSearchRequest(query="boosted"), None)
    assert boosted[0].renote.text == "original post"


def test_denied_policy_short_circuits(app_config: AppConfig) -> None:
    roles = MagicMock(spec=RoleService)
    roles.get_user_policies.return_value = RolePolicies(can_search_notes=False)
    users = MagicMock(spec=UserService)
    queries = MagicMock(spec=QueryService)
    notes = MagicMock(spec=NoteStore)
    service = NoteSearchService(
        roles=roles, users=users, queries=queries, notes=notes, config=app_config
    )

    with pytest.raises(UnavailableError) as excinfo:
        service.search(NoteSearchRequest(query="x from:alice home:bob"), None)

    assert excinfo.value.error == "UNAVAILABLE"
    roles.get_user_policies.assert_called_once_with(None)
    users.find_by_username.assert_not_called()
    queries.make_pagination.assert_not_called()
    notes.find_many.assert_not_called()


def test_anonymous_policy_comes_from_config(db_service) -> None:
    config = AppConfig(database_path=db_service.db_path, anonymous_can_search_notes=False)
    service = NoteSearchService(config=config)

    with pytest.raises(UnavailableError):
        service.search(NoteSearchRequest(query="x"), None)


def test_mute_and_block_only_for_authenticated_callers(app_config: AppConfig, users: UserService) -> None:
    queries = MagicMock(wraps=QueryService())
    service = NoteSearchService(queries=queries, config=app_config)

    service.search(NoteSearchRequest(query="x"), None)
    queries.muted_user_predicate.assert_not_called()
    queries.blocked_user_predicate.assert_not_called()

    me = users.create_user("me")
    service.search(NoteSearchRequest(query="x"), me)
    queries.muted_user_predicate.assert_called_once_with(me)
    queries.blocked_user_predicate.assert_called_once_with(me)
