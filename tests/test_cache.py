from dataclasses import dataclass

from dbft.cache import Inbox, MessageCache
from dbft.types import MessageType


@dataclass
class _Stub:
    height: int
    type: MessageType
    validator_index: int = 0


def test_message_cache():
    cache = MessageCache()
    cache.add_message(_Stub(3, MessageType.PREPARE_REQUEST))
    cache.add_message(_Stub(4, MessageType.CHANGE_VIEW))
    cache.add_message(_Stub(4, MessageType.COMMIT))
    cache.add_message(_Stub(3, MessageType.PRE_COMMIT))

    box = cache.get_height(3)
    assert len(box.ch_views) == 0
    assert len(box.prepare) == 1
    assert len(box.pre_commit) == 1
    assert len(box.commit) == 0

    box = cache.get_height(4)
    assert len(box.ch_views) == 1
    assert len(box.prepare) == 0
    assert len(box.pre_commit) == 0
    assert len(box.commit) == 1


def test_get_height_removes_inbox():
    cache = MessageCache()
    message = _Stub(5, MessageType.COMMIT, 2)
    cache.add_message(message)
    box = cache.get_height(5)
    assert box.commit == {2: message}
    assert cache.get_height(5) is None


def test_get_missing_height():
    assert MessageCache().get_height(1) is None


def test_prepare_response_shares_prepare_bucket():
    cache = MessageCache()
    request = _Stub(2, MessageType.PREPARE_REQUEST, 0)
    response = _Stub(2, MessageType.PREPARE_RESPONSE, 1)
    cache.add_message(request)
    cache.add_message(response)
    assert cache.get_height(2).prepare == {0: request, 1: response}


def test_later_message_replaces_earlier_from_same_validator():
    cache = MessageCache()
    first = _Stub(7, MessageType.CHANGE_VIEW, 3)
    second = _Stub(7, MessageType.CHANGE_VIEW, 3)
    cache.add_message(first)
    cache.add_message(second)
    box = cache.get_height(7)
    assert len(box.ch_views) == 1
    assert box.ch_views[3] is second


def test_recovery_messages_are_not_stored():
    cache = MessageCache()
    cache.add_message(_Stub(9, MessageType.RECOVERY_REQUEST, 1))
    cache.add_message(_Stub(9, MessageType.RECOVERY_MESSAGE, 2))
    assert cache.get_height(9) == Inbox()